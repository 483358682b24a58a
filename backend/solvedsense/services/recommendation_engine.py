"""
Recommendation Generator

Builds tiered study recommendations from the current snapshot, the learning
pattern and the adaptive weights:
1. Immediate (today): weakness focus, tier challenge, warm-up
2. Short-term (this week): per-tag accuracy goals and a weekly volume plan
3. Long-term (this month): tier goal and skill development
4. Enrichment from the caller's time budget, mood and streak

Weights only gate and size the items; reasoning text comes from an Explainer.
"""

import logging
import math
import re
from typing import Dict, List, Optional, Sequence

from solvedsense.schemas.analytics import (
    AdaptiveWeights,
    AnalysisContext,
    ImmediateRecommendation,
    LevelStat,
    LongTermRecommendation,
    RecommendationSet,
    ShortTermRecommendation,
    TagStat,
    UserSnapshot,
    WeakTag,
)
from solvedsense.services.adaptive_weights import calculate_adaptive_weights
from solvedsense.services.explainer import Explainer, TemplateExplainer
from solvedsense.services.learning_patterns import LearningPattern, PreferenceScore
from solvedsense.services.metrics import MAX_TIER
from solvedsense.services.progress import analyze_progress
from solvedsense.services.weakness import identify_weak_tags

logger = logging.getLogger(__name__)


PRIORITY_WEIGHT = {"high": 3, "medium": 2, "low": 1}

WEAKNESS_GATE = 0.3
PROGRESS_GATE = 0.25
PREFERENCE_GATE = 0.15

SHORT_TERM_WEAK_TAGS = 2
ACCURACY_STEP = 10
ACCURACY_CEILING = 90
MIN_WEEKLY_TARGET = 7

BASE_MONTHLY_GAIN = 20
MIN_MONTHLY_GAIN = 5
# Approximate rating needed per tier, one entry per five tiers
TIER_RATING_GAPS = [30, 30, 30, 30, 30, 50, 100, 100, 100, 150]
DEFAULT_TIER_GAP = 100
PROBLEMS_PER_RATING = 0.5

CORE_SKILL_TAGS = ["implementation", "math", "graphs", "dp", "greedy", "string", "sorting"]
UNDERDEVELOPED_SCORE = 0.5
SKILL_TARGET_LEVEL = 0.7
MAX_SKILL_AREAS = 3

SHORT_SESSION_MINUTES = 30
LONG_SESSION_MINUTES = 120


# =============================================================================
# IMMEDIATE
# =============================================================================

def favorite_tag(preferences: Dict[str, PreferenceScore]) -> Optional[str]:
    """Highest preference score; the earliest scored tag wins ties."""
    if not preferences:
        return None
    ranked = sorted(preferences.items(), key=lambda item: item[1].score, reverse=True)
    return ranked[0][0]


def sort_by_priority(items: List[ImmediateRecommendation]) -> List[ImmediateRecommendation]:
    return sorted(items, key=lambda r: PRIORITY_WEIGHT.get(r.priority, 0), reverse=True)


def immediate_recommendations(
    weak_tags: Sequence[WeakTag],
    progress: Dict,
    pattern: Optional[LearningPattern],
    weights: AdaptiveWeights,
) -> List[ImmediateRecommendation]:
    items = []

    if weak_tags and weights.weakness > WEAKNESS_GATE:
        worst = weak_tags[0]
        items.append(ImmediateRecommendation(
            type="weakness_focus",
            priority="high",
            action=f"Solve one {worst.tag} problem",
            reason=f"Weakest tag at {worst.success_rate}% accuracy",
            estimated_time="30-45 min",
            difficulty=progress["current_tier_level"],
        ))

    if progress["ready_for_promotion"] and weights.progress > PROGRESS_GATE:
        items.append(ImmediateRecommendation(
            type="tier_challenge",
            priority="medium",
            action=f"Attempt a {progress['next_tier_goal']} problem",
            reason="Current tier is mastered, ready for the next one",
            estimated_time="45-60 min",
            difficulty=progress["next_tier_level"],
        ))

    if pattern is not None and weights.preference > PREFERENCE_GATE:
        tag = favorite_tag(pattern.preferences)
        if tag:
            items.append(ImmediateRecommendation(
                type="preference_based",
                priority="low",
                action=f"Warm up with a {tag} problem",
                reason="A favourite tag to get into rhythm",
                estimated_time="20-30 min",
                difficulty=progress["current_tier_level"],
            ))

    return sort_by_priority(items)


# =============================================================================
# SHORT TERM
# =============================================================================

def short_term_recommendations(
    snapshot: UserSnapshot,
    weak_tags: Sequence[WeakTag],
    weights: AdaptiveWeights,
) -> List[ShortTermRecommendation]:
    items = []

    for weak in weak_tags[:SHORT_TERM_WEAK_TAGS]:
        items.append(ShortTermRecommendation(
            type="weekly_weakness",
            goal=f"Raise {weak.tag} accuracy by {ACCURACY_STEP} points",
            target_problems=math.ceil(weak.tried * 0.3) + 3,
            current_accuracy=weak.success_rate,
            target_accuracy=min(round(weak.success_rate + ACCURACY_STEP, 1), ACCURACY_CEILING),
        ))

    weekly_target = max(MIN_WEEKLY_TARGET, snapshot.solved_count // 50)
    items.append(ShortTermRecommendation(
        type="weekly_progress",
        goal=f"Solve {weekly_target} problems this week",
        target_problems=weekly_target,
        breakdown={
            "weakness": math.ceil(weekly_target * weights.weakness),
            "progress": math.ceil(weekly_target * weights.progress),
            "review": math.floor(weekly_target * 0.2),
            "challenge": math.floor(weekly_target * 0.1),
        },
    ))

    return items


# =============================================================================
# LONG TERM
# =============================================================================

def estimate_monthly_rating_gain(pattern: Optional[LearningPattern]) -> float:
    if pattern is None:
        return BASE_MONTHLY_GAIN
    return max(MIN_MONTHLY_GAIN, BASE_MONTHLY_GAIN + pattern.performance.momentum)


def calculate_target_tier(current_tier: int, rating_gain: float) -> int:
    """Walk up tiers while the remaining gain covers the next gap."""
    tier = current_tier
    remaining = rating_gain

    while remaining > 0 and tier < MAX_TIER:
        index = tier // 5
        gap = TIER_RATING_GAPS[index] if index < len(TIER_RATING_GAPS) else DEFAULT_TIER_GAP
        if remaining < gap:
            break
        tier += 1
        remaining -= gap

    return tier


def calculate_required_effort(rating_gain: float) -> int:
    return math.ceil(rating_gain * PROBLEMS_PER_RATING)


def underdeveloped_areas(preferences: Dict[str, PreferenceScore]) -> List[Dict]:
    areas = []
    for tag in CORE_SKILL_TAGS:
        pref = preferences.get(tag)
        if pref is None or pref.score < UNDERDEVELOPED_SCORE:
            areas.append({
                "tag": tag,
                "current_level": round(pref.score, 3) if pref else 0.0,
                "target_level": SKILL_TARGET_LEVEL,
            })
    return areas[:MAX_SKILL_AREAS]


def learning_path(tag: str) -> List[str]:
    return [
        f"5 introductory {tag} problems",
        f"3 intermediate {tag} problems",
        f"2 {tag} problems combined with other techniques",
    ]


def long_term_recommendations(
    snapshot: UserSnapshot,
    pattern: Optional[LearningPattern],
) -> List[LongTermRecommendation]:
    gain = estimate_monthly_rating_gain(pattern)
    items = [LongTermRecommendation(
        type="monthly_tier_goal",
        current_tier=snapshot.tier,
        target_tier=calculate_target_tier(snapshot.tier, gain),
        estimated_rating_gain=round(gain, 1),
        required_effort=calculate_required_effort(gain),
    )]

    if pattern is not None:
        for area in underdeveloped_areas(pattern.preferences):
            items.append(LongTermRecommendation(
                type="skill_development",
                area=area["tag"],
                current_level=area["current_level"],
                target_level=area["target_level"],
                learning_path=learning_path(area["tag"]),
            ))

    return items


# =============================================================================
# ENRICHMENT
# =============================================================================

def _start_minutes(estimated_time: str) -> Optional[int]:
    match = re.match(r"\s*(\d+)", estimated_time or "")
    return int(match.group(1)) if match else None


def _raise_tier_challenges(items: List[ImmediateRecommendation]) -> List[ImmediateRecommendation]:
    return [
        r.model_copy(update={"priority": "high"}) if r.type == "tier_challenge" else r
        for r in items
    ]


def adjust_for_time(
    items: List[ImmediateRecommendation],
    minutes: int,
) -> List[ImmediateRecommendation]:
    if minutes < SHORT_SESSION_MINUTES:
        return [
            r for r in items
            if (_start_minutes(r.estimated_time) or SHORT_SESSION_MINUTES + 1) <= SHORT_SESSION_MINUTES
        ]
    if minutes > LONG_SESSION_MINUTES:
        return _raise_tier_challenges(items)
    return items


def adjust_for_mood(
    items: List[ImmediateRecommendation],
    mood: str,
) -> List[ImmediateRecommendation]:
    if mood == "frustrated":
        boost = ImmediateRecommendation(
            type="confidence_boost",
            priority="high",
            action="Warm up with an easy problem",
            reason="A quick success to rebuild confidence",
            estimated_time="15-20 min",
        )
        return [boost] + items
    if mood == "motivated":
        return _raise_tier_challenges(items)
    return items


def personalized_message(
    items: Sequence[ImmediateRecommendation],
    context: AnalysisContext,
) -> str:
    messages = []

    high_priority = [r for r in items if r.priority == "high"]
    if high_priority:
        messages.append(f"Today, focus on this: {high_priority[0].action}.")

    if context.streak and context.streak > 0:
        messages.append(f"{context.streak}-day streak and counting. Keep it going!")

    return " ".join(messages)


def enrich_recommendations(
    recommendations: RecommendationSet,
    context: Optional[AnalysisContext] = None,
) -> RecommendationSet:
    """Apply time budget, then mood, then compose the personalized message."""
    context = context or AnalysisContext()
    items = list(recommendations.immediate)

    if context.time_available_minutes:
        items = adjust_for_time(items, context.time_available_minutes)

    if context.mood:
        items = adjust_for_mood(items, context.mood)

    return recommendations.model_copy(update={
        "immediate": items,
        "personalized_message": personalized_message(items, context),
    })


# =============================================================================
# GENERATOR
# =============================================================================

async def generate_recommendations(
    snapshot: UserSnapshot,
    tag_stats: Optional[Sequence[TagStat]],
    level_stats: Optional[Sequence[LevelStat]],
    pattern: Optional[LearningPattern],
    context: Optional[AnalysisContext] = None,
    explainer: Optional[Explainer] = None,
) -> RecommendationSet:
    """
    Full adaptive recommendation set for one user.

    The pattern should already include the current snapshot; this function
    never updates it.
    """
    context = context or AnalysisContext()
    explainer = explainer or TemplateExplainer()

    weights = calculate_adaptive_weights(pattern, context)
    weak_tags = identify_weak_tags(tag_stats)
    progress = analyze_progress(snapshot, level_stats)
    trend = pattern.performance.trend if pattern is not None else "insufficient_data"

    logger.debug(
        "Generating recommendations for %s (trend=%s, weights=%s)",
        snapshot.handle, trend, weights.model_dump(),
    )

    recommendations = RecommendationSet(
        immediate=immediate_recommendations(weak_tags, progress, pattern, weights),
        short_term=short_term_recommendations(snapshot, weak_tags, weights),
        long_term=long_term_recommendations(snapshot, pattern),
        reasoning=await explainer.reasoning(weights, trend),
        weights=weights,
        trend=trend,
    )

    return enrich_recommendations(recommendations, context)
