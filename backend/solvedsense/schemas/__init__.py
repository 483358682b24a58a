"""
SolvedSense Schemas Package

Pydantic models for upstream records, request context and analytics results.
"""

from solvedsense.schemas.analytics import (
    # Upstream records
    TagStat,
    LevelStat,
    UserSnapshot,

    # Context
    AnalysisContext,

    # Diagnostics
    WeakTag,
    AdaptiveWeights,

    # Recommendations
    ImmediateRecommendation,
    ShortTermRecommendation,
    LongTermRecommendation,
    RecommendationSet,
)

__all__ = [
    # Upstream records
    "TagStat",
    "LevelStat",
    "UserSnapshot",

    # Context
    "AnalysisContext",

    # Diagnostics
    "WeakTag",
    "AdaptiveWeights",

    # Recommendations
    "ImmediateRecommendation",
    "ShortTermRecommendation",
    "LongTermRecommendation",
    "RecommendationSet",
]
