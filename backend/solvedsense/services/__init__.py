# Services module

# Analytics primitives
from solvedsense.services.metrics import (
    tag_accuracy,
    difficulty_success,
    activity_pattern,
    tier_name,
    tier_progress,
)
from solvedsense.services.weakness import (
    identify_weak_tags,
    analyze_weakness,
    calculate_learning_priority,
)
from solvedsense.services.difficulty import analyze_difficulty_performance, level_mastery
from solvedsense.services.progress import analyze_progress, track_learning_progress

# Learning pattern and adaptive recommendations
from solvedsense.services.learning_patterns import (
    LearningPattern,
    LearningPatternTracker,
    InMemoryPatternStore,
    PatternStore,
)
from solvedsense.services.adaptive_weights import calculate_adaptive_weights
from solvedsense.services.recommendation_engine import generate_recommendations
from solvedsense.services.tier_predictor import predict_tier_achievement

# Orchestration
from solvedsense.services.analytics_engine import AnalyticsEngine

__all__ = [
    # Metrics
    "tag_accuracy",
    "difficulty_success",
    "activity_pattern",
    "tier_name",
    "tier_progress",
    # Weakness / difficulty / progress
    "identify_weak_tags",
    "analyze_weakness",
    "calculate_learning_priority",
    "analyze_difficulty_performance",
    "level_mastery",
    "analyze_progress",
    "track_learning_progress",
    # Patterns and recommendations
    "LearningPattern",
    "LearningPatternTracker",
    "InMemoryPatternStore",
    "PatternStore",
    "calculate_adaptive_weights",
    "generate_recommendations",
    "predict_tier_achievement",
    # Orchestration
    "AnalyticsEngine",
]
