"""
Tier Achievement Predictor

Estimates how long until the next tier from the tier-progress percentage,
the number of weak tags and promotion readiness. Thresholds are hand-tuned
and kept exactly as published.
"""

from typing import Dict, List, Optional, Sequence

from solvedsense.schemas.analytics import TagStat, LevelStat, UserSnapshot
from solvedsense.services.difficulty import analyze_difficulty_performance
from solvedsense.services.metrics import MAX_TIER, tier_name, tier_progress
from solvedsense.services.weakness import identify_weak_tags


def predict_tier_achievement(
    progress: float,
    weak_count: int,
    ready: bool,
    solved_count: int = 0,
    current_tier: int = 0,
) -> Dict:
    """
    Decision table:
        progress >= 80, weak <= 2, ready  -> "1-2 weeks", High
        progress >= 50, weak <= 3         -> "1-2 months", Medium (+ blockers)
        otherwise                         -> "2-3 months", Low
    """
    blockers: List[str] = []

    if progress >= 80 and weak_count <= 2 and ready:
        estimate, confidence = "1-2 weeks", "High"
    elif progress >= 50 and weak_count <= 3:
        estimate, confidence = "1-2 months", "Medium"
        if weak_count > 0:
            blockers.append("weak tags need improvement")
        if not ready:
            blockers.append("current tier not yet mastered")
    else:
        estimate, confidence = "2-3 months", "Low"
        blockers.append("needs foundational improvement")

    return {
        "next_tier": tier_name(min(current_tier + 1, MAX_TIER)),
        "current_progress": round(progress, 1),
        "estimated_time": estimate,
        "confidence": confidence,
        "blockers": blockers,
        "recommendations": tier_recommendations(weak_count, ready, solved_count, current_tier),
    }


def tier_recommendations(weak_count: int, ready: bool, solved_count: int, current_tier: int) -> List[str]:
    recommendations = []

    if weak_count > 3:
        recommendations.append("Focused practice on weak tags (3-4 problems a week)")

    if not ready:
        recommendations.append(f"More practice at your current tier ({tier_name(current_tier)})")

    if solved_count < 100:
        recommendations.append("Build basic problem-solving skills")

    recommendations.append("Study consistently every day (2-3 problems)")
    return recommendations


def predict_from_stats(
    snapshot: UserSnapshot,
    tag_stats: Optional[Sequence[TagStat]],
    level_stats: Optional[Sequence[LevelStat]],
) -> Dict:
    """Tier prediction straight from the fetched statistics."""
    difficulty = analyze_difficulty_performance(level_stats, snapshot.tier)
    return predict_tier_achievement(
        progress=tier_progress(snapshot.rating, snapshot.tier),
        weak_count=len(identify_weak_tags(tag_stats)),
        ready=difficulty["ready_for_next_level"],
        solved_count=snapshot.solved_count,
        current_tier=snapshot.tier,
    )
