"""
Progress Analyzer

Summaries of where a user stands relative to the next tier, which tags are
strengths and which are on the way up.
"""

from typing import Dict, List, Optional, Sequence

from solvedsense.schemas.analytics import TagStat, LevelStat, UserSnapshot
from solvedsense.services.difficulty import is_ready_for_next_level
from solvedsense.services.metrics import (
    MAX_TIER,
    activity_pattern,
    difficulty_success,
    tag_accuracy,
    tier_name,
    tier_progress,
)

STRENGTH_MIN_TRIED = 5
STRENGTH_ACCURACY = 0.8
IMPROVING_MIN_TRIED = 3
IMPROVING_ACCURACY = 0.5
TIER_ADVANCEMENT_PROGRESS = 70


def analyze_progress(
    snapshot: UserSnapshot,
    level_stats: Optional[Sequence[LevelStat]],
) -> Dict:
    """Current standing used by the recommendation generator."""
    by_level = difficulty_success(level_stats)["by_level"]
    next_tier = min(snapshot.tier + 1, MAX_TIER)

    return {
        "current_tier": tier_name(snapshot.tier),
        "current_tier_level": snapshot.tier,
        "next_tier_goal": tier_name(next_tier),
        "next_tier_level": next_tier,
        "progress_to_next": round(tier_progress(snapshot.rating, snapshot.tier), 1),
        "solved_count": snapshot.solved_count,
        "rating": snapshot.rating,
        "ready_for_promotion": is_ready_for_next_level(snapshot.tier, by_level),
    }


def _progress_recommendations(
    strong: List[Dict],
    improving: List[Dict],
    snapshot: UserSnapshot,
) -> List[Dict]:
    recommendations = []

    if strong:
        tags = ", ".join(t["tag"] for t in strong[:2])
        recommendations.append({
            "type": "strength_leverage",
            "message": f"Use your strong tags ({tags}) to take on harder problems",
            "priority": "Medium",
        })

    if improving:
        tags = ", ".join(t["tag"] for t in improving[:2])
        recommendations.append({
            "type": "improvement_focus",
            "message": f"Keep pushing the tags you are improving in ({tags})",
            "priority": "High",
        })

    if tier_progress(snapshot.rating, snapshot.tier) > TIER_ADVANCEMENT_PROGRESS:
        recommendations.append({
            "type": "tier_advancement",
            "message": f"Get ready for {tier_name(snapshot.tier + 1)}",
            "priority": "High",
        })

    return recommendations


def track_learning_progress(
    snapshot: UserSnapshot,
    tag_stats: Optional[Sequence[TagStat]],
    level_stats: Optional[Sequence[LevelStat]],
) -> Dict:
    """
    Learning progress overview.

    Returns:
        {
            "overall_progress": {"current_tier", "solved_count", "rating", "progress_to_next_tier"},
            "strength_areas": [...],
            "improvement_areas": [...],
            "difficulty_progression": {...},
            "activity_patterns": {...},
            "recommendations": [...]
        }
    """
    accuracy = tag_accuracy(tag_stats)

    strong = [
        t for t in accuracy
        if t["tried"] >= STRENGTH_MIN_TRIED and t["accuracy"] >= STRENGTH_ACCURACY
    ][:5]
    improving = [
        t for t in accuracy
        if t["tried"] >= IMPROVING_MIN_TRIED and IMPROVING_ACCURACY <= t["accuracy"] < STRENGTH_ACCURACY
    ][:5]

    return {
        "overall_progress": {
            "current_tier": tier_name(snapshot.tier),
            "solved_count": snapshot.solved_count,
            "rating": snapshot.rating,
            "progress_to_next_tier": round(tier_progress(snapshot.rating, snapshot.tier), 1),
        },
        "strength_areas": strong,
        "improvement_areas": improving,
        "difficulty_progression": difficulty_success(level_stats),
        "activity_patterns": activity_pattern(snapshot),
        "recommendations": _progress_recommendations(strong, improving, snapshot),
    }
