"""
Weakness Identifier

Ranks tags by accuracy and turns the worst ones into weakness diagnostics:
1. Weak tag identification (<60% accuracy, at least 3 attempts)
2. Severity and improvement-potential classification
3. Targeted improvement recommendations
4. Learning priority across weak tags and tier consolidation

All functions are pure; results are built fresh on every call.
"""

from typing import Dict, List, Optional, Sequence

from solvedsense.schemas.analytics import TagStat, LevelStat, UserSnapshot, WeakTag
from solvedsense.services.difficulty import analyze_difficulty_performance
from solvedsense.services.metrics import tag_accuracy, tier_name, coerce_level_stats


WEAK_ACCURACY_THRESHOLD = 0.6
MIN_ATTEMPTS = 3
MAX_WEAK_TAGS = 5
MAX_WEAKNESS_RECOMMENDATIONS = 3
MAX_PRIORITIES = 5

IMPROVEMENT_TIME_BY_SEVERITY = {
    "Critical": "3-4wk",
    "High": "2-3wk",
    "Medium": "1-2wk",
    "Low": "1wk",
}

SEVERITY_PRIORITY_BONUS = {"Critical": 3, "High": 2, "Medium": 1}
POTENTIAL_PRIORITY_BONUS = {"High": 2, "Medium": 1}

DEFAULT_SUGGESTED_DIFFICULTY = "Bronze I - Silver V"


def weakness_severity(accuracy: float) -> str:
    if accuracy < 0.3:
        return "Critical"
    if accuracy < 0.5:
        return "High"
    if accuracy < 0.6:
        return "Medium"
    return "Low"


def improvement_potential(accuracy: float, tried: int) -> str:
    """More unsolved attempts means more room to gain."""
    score = (1 - accuracy) * tried
    if score > 10:
        return "High"
    if score > 5:
        return "Medium"
    return "Low"


def estimate_improvement_time(severity: str) -> str:
    return IMPROVEMENT_TIME_BY_SEVERITY.get(severity, "1wk")


def identify_weak_tags(tag_stats: Optional[Sequence[TagStat]]) -> List[WeakTag]:
    """Up to five weak tags, worst accuracy first."""
    candidates = [
        row for row in tag_accuracy(tag_stats)
        if row["tried"] >= MIN_ATTEMPTS and row["accuracy"] < WEAK_ACCURACY_THRESHOLD
    ]
    candidates.sort(key=lambda r: r["accuracy"])

    weak_tags = []
    for row in candidates[:MAX_WEAK_TAGS]:
        severity = weakness_severity(row["accuracy"])
        weak_tags.append(WeakTag(
            tag=row["tag"],
            solved=row["solved"],
            tried=row["tried"],
            accuracy=row["accuracy"],
            success_rate=row["success_rate"],
            severity=severity,
            improvement_potential=improvement_potential(row["accuracy"], row["tried"]),
            estimated_time=estimate_improvement_time(severity),
        ))
    return weak_tags


def suggest_difficulty(level_stats: Optional[Sequence[LevelStat]]) -> str:
    """One tier above the mean level the user has touched."""
    levels = [s.level for s in coerce_level_stats(level_stats) if s.level > 0]
    if not levels:
        return DEFAULT_SUGGESTED_DIFFICULTY

    suggested = round(sum(levels) / len(levels) + 1)
    return tier_name(max(1, min(30, suggested)))


def analyze_weakness(
    tag_stats: Optional[Sequence[TagStat]],
    level_stats: Optional[Sequence[LevelStat]],
) -> Dict:
    """
    Weak tags plus the top improvement recommendations.

    Returns:
        {
            "weakest_tags": [WeakTag, ...],
            "recommendations": [
                {"type": "weakness_improvement", "tag", "reason", "severity",
                 "suggested_difficulty", "estimated_time"}, ...
            ]
        }
    """
    weakest = identify_weak_tags(tag_stats)
    suggested = suggest_difficulty(level_stats)

    recommendations = [
        {
            "type": "weakness_improvement",
            "tag": tag.tag,
            "reason": f"Accuracy of {tag.success_rate}% needs improvement",
            "severity": tag.severity,
            "suggested_difficulty": suggested,
            "estimated_time": tag.estimated_time,
        }
        for tag in weakest[:MAX_WEAKNESS_RECOMMENDATIONS]
    ]

    return {"weakest_tags": weakest, "recommendations": recommendations}


def _tag_priority(tag: WeakTag, index: int) -> int:
    priority = 10 - index
    priority += SEVERITY_PRIORITY_BONUS.get(tag.severity, 0)
    priority += POTENTIAL_PRIORITY_BONUS.get(tag.improvement_potential, 0)
    return min(10, priority)


def calculate_learning_priority(
    tag_stats: Optional[Sequence[TagStat]],
    level_stats: Optional[Sequence[LevelStat]],
    snapshot: UserSnapshot,
) -> List[Dict]:
    """
    Ordered study priorities (highest first, at most five).

    Each weak tag contributes a ``tag_improvement`` item; a ``tier_consolidation``
    item is added while the user is not ready for the next tier.
    """
    priorities = []
    for index, tag in enumerate(identify_weak_tags(tag_stats)):
        priorities.append({
            "type": "tag_improvement",
            "priority": _tag_priority(tag, index),
            "tag": tag.tag,
            "reason": f"Improve {tag.tag} accuracy from {tag.success_rate}%",
            "urgency": tag.severity,
            "estimated_time": tag.estimated_time,
        })

    performance = analyze_difficulty_performance(level_stats, snapshot.tier)
    if not performance["ready_for_next_level"]:
        priorities.append({
            "type": "tier_consolidation",
            "priority": 5,
            "tag": None,
            "reason": f"Master your current tier ({tier_name(snapshot.tier)})",
            "urgency": "Medium",
            "estimated_time": "2-3wk",
        })

    priorities.sort(key=lambda p: p["priority"], reverse=True)
    return priorities[:MAX_PRIORITIES]
