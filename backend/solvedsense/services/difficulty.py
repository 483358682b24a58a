"""
Difficulty Performance Analyzer

Mastery of the user's current tier bucket and readiness for promotion,
computed from the difficulty-success aggregate.
"""

from typing import Dict, List, Optional, Sequence

from solvedsense.schemas.analytics import LevelStat
from solvedsense.services.metrics import difficulty_success, tier_name

# A bucket counts as mastered only after this many attempts
MIN_MASTERY_ATTEMPTS = 10
PROMOTION_MASTERY = 70
PROMOTION_MIN_SOLVED = 10
STRUGGLING_MIN_TOTAL = 3
STRUGGLING_MASTERY = 50


def level_mastery(current_tier: int, by_level: Dict[int, Dict]) -> float:
    """solved / max(total, 10) * 100 for the current tier bucket, 0 without data."""
    data = (by_level or {}).get(current_tier)
    if not data or data.get("total", 0) == 0:
        return 0.0
    return data["solved"] / max(data["total"], MIN_MASTERY_ATTEMPTS) * 100


def is_ready_for_next_level(current_tier: int, by_level: Dict[int, Dict]) -> bool:
    mastery = level_mastery(current_tier, by_level)
    solved = (by_level or {}).get(current_tier, {}).get("solved", 0)
    return mastery >= PROMOTION_MASTERY and solved >= PROMOTION_MIN_SOLVED


def find_struggling_levels(by_level: Dict[int, Dict]) -> List[Dict]:
    struggling = []
    for level, data in sorted((by_level or {}).items()):
        total = data.get("total", 0)
        if total < STRUGGLING_MIN_TOTAL:
            continue
        mastery = data["solved"] / total * 100
        if mastery < STRUGGLING_MASTERY:
            struggling.append({
                "level": level,
                "tier_name": tier_name(level),
                "mastery": round(mastery, 1),
            })
    return struggling


def difficulty_recommendation(current_tier: int, mastery: float) -> str:
    if mastery < STRUGGLING_MASTERY:
        return f"Practice more problems at your current tier ({tier_name(current_tier)})"
    if mastery >= PROMOTION_MASTERY:
        return f"Attempt problems at the next tier ({tier_name(current_tier + 1)})"
    return "Consolidate your current tier before moving on"


def analyze_difficulty_performance(
    level_stats: Optional[Sequence[LevelStat]],
    current_tier: int,
) -> Dict:
    """
    Returns:
        {
            "current_level_mastery": float (0-100),
            "ready_for_next_level": bool,
            "struggling_levels": [{"level", "tier_name", "mastery"}, ...],
            "recommendation": str
        }
    """
    by_level = difficulty_success(level_stats)["by_level"]
    mastery = level_mastery(current_tier, by_level)

    return {
        "current_level_mastery": round(mastery, 1),
        "ready_for_next_level": is_ready_for_next_level(current_tier, by_level),
        "struggling_levels": find_struggling_levels(by_level),
        "recommendation": difficulty_recommendation(current_tier, mastery),
    }
