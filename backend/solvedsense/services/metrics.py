"""
Metric Primitives

Pure functions over raw solve statistics:
1. Tag accuracy (solved / tried per tag)
2. Success by difficulty level
3. Activity estimates from the profile snapshot
4. Tier names and progress toward the next tier

Missing or malformed statistics never raise; they produce the documented
zero-value shapes.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from solvedsense.schemas.analytics import TagStat, LevelStat, UserSnapshot

logger = logging.getLogger(__name__)


TIER_NAMES = [
    "Unrated",
    "Bronze V", "Bronze IV", "Bronze III", "Bronze II", "Bronze I",
    "Silver V", "Silver IV", "Silver III", "Silver II", "Silver I",
    "Gold V", "Gold IV", "Gold III", "Gold II", "Gold I",
    "Platinum V", "Platinum IV", "Platinum III", "Platinum II", "Platinum I",
    "Diamond V", "Diamond IV", "Diamond III", "Diamond II", "Diamond I",
    "Ruby V", "Ruby IV", "Ruby III", "Ruby II", "Ruby I",
]

# Minimum rating for each tier (index = tier)
TIER_RATING_THRESHOLDS = [
    0, 30, 60, 90, 120, 150,
    200, 300, 400, 500, 650,
    800, 950, 1100, 1250, 1400,
    1600, 1750, 1900, 2000, 2100,
    2200, 2300, 2400, 2500, 2600,
    2700, 2800, 2850, 2900, 2950,
]

MAX_TIER = 30


def tier_name(tier: int) -> str:
    if 0 <= tier < len(TIER_NAMES):
        return TIER_NAMES[tier]
    return "Unknown"


def tier_progress(rating: int, tier: int) -> float:
    """
    Percent of the way from the current tier threshold to the next one,
    clamped to 0-100. The top tier always reports 100.
    """
    if tier >= MAX_TIER:
        return 100.0
    current = TIER_RATING_THRESHOLDS[max(tier, 0)]
    nxt = TIER_RATING_THRESHOLDS[max(tier, 0) + 1]
    progress = (rating - current) / (nxt - current) * 100
    return max(0.0, min(100.0, progress))


# =============================================================================
# INPUT COERCION
# =============================================================================

def _coerce(stats: Any, model, label: str) -> list:
    if not isinstance(stats, (list, tuple)):
        if stats is not None:
            logger.warning("Ignoring non-list %s input of type %s", label, type(stats).__name__)
        return []

    records = []
    for item in stats:
        if isinstance(item, model):
            records.append(item)
            continue
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed %s record: %s", label, e.errors()[:1])
    return records


def coerce_tag_stats(tag_stats: Any) -> List[TagStat]:
    return _coerce(tag_stats, TagStat, "tag stat")


def coerce_level_stats(level_stats: Any) -> List[LevelStat]:
    return _coerce(level_stats, LevelStat, "level stat")


# =============================================================================
# TAG ACCURACY
# =============================================================================

def tag_accuracy(tag_stats: Optional[Sequence[TagStat]]) -> List[Dict]:
    """
    Accuracy for every tag, best first.

    Returns:
        [{"tag": str, "solved": int, "tried": int,
          "accuracy": float (0-1), "success_rate": float (percent, 1 decimal)}, ...]
    """
    rows = []
    for stat in coerce_tag_stats(tag_stats):
        accuracy = stat.accuracy
        rows.append({
            "tag": stat.tag,
            "solved": stat.solved,
            "tried": stat.tried,
            "accuracy": accuracy,
            "success_rate": round(accuracy * 100, 1),
        })

    return sorted(rows, key=lambda r: r["accuracy"], reverse=True)


# =============================================================================
# DIFFICULTY SUCCESS
# =============================================================================

def difficulty_success(level_stats: Optional[Sequence[LevelStat]]) -> Dict:
    """
    Group solves by difficulty level.

    Levels that are unrated (0) or have no solves are left out. ``total`` is the
    number of attempted problems at that level.
    """
    by_level: Dict[int, Dict] = {}
    weighted_levels = 0
    total_solved = 0

    for stat in coerce_level_stats(level_stats):
        if stat.level <= 0 or stat.solved <= 0:
            continue
        bucket = by_level.setdefault(stat.level, {
            "tier_name": tier_name(stat.level),
            "solved": 0,
            "total": 0,
        })
        bucket["solved"] += stat.solved
        bucket["total"] += stat.tried
        weighted_levels += stat.level * stat.solved
        total_solved += stat.solved

    levels = sorted(by_level)

    return {
        "by_level": {level: by_level[level] for level in levels},
        "summary": {
            "easiest": tier_name(levels[0]) if levels else "N/A",
            "hardest": tier_name(levels[-1]) if levels else "N/A",
            "average_level": round(weighted_levels / total_solved, 1) if total_solved else 0.0,
            "total_solved": total_solved,
        },
    }


# =============================================================================
# ACTIVITY
# =============================================================================

def _activity_tier_label(solved_count: int) -> str:
    if solved_count == 0:
        return "new user"
    if solved_count < 50:
        return "beginner (< 3 months)"
    if solved_count < 200:
        return "intermediate (3-12 months)"
    if solved_count < 500:
        return "advanced (1-2 years)"
    return "expert (2+ years)"


def activity_pattern(snapshot: Optional[UserSnapshot]) -> Dict:
    """Rough activity averages, assuming the solve count spans about a year."""
    if snapshot is None:
        return {
            "daily_avg": 0.0,
            "weekly_avg": 0.0,
            "monthly_avg": 0.0,
            "streak": 0,
            "activity_tier_label": _activity_tier_label(0),
        }

    solved = snapshot.solved_count
    return {
        "daily_avg": round(solved / 365, 1),
        "weekly_avg": round(solved / 52, 1),
        "monthly_avg": round(solved / 12, 1),
        "streak": snapshot.max_streak,
        "activity_tier_label": _activity_tier_label(solved),
    }
