"""
Adaptive Weight Calculator

Shifts emphasis between the four recommendation categories based on the
learning pattern and the caller's context. Adjustments are additive and run
in a fixed order; the result is never clamped or renormalized, since the
weights are only compared against thresholds downstream.
"""

from typing import Optional

from solvedsense.schemas.analytics import AdaptiveWeights, AnalysisContext
from solvedsense.services.learning_patterns import LearningPattern

MOMENTUM_SWING = 10


def calculate_adaptive_weights(
    pattern: Optional[LearningPattern],
    context: Optional[AnalysisContext] = None,
) -> AdaptiveWeights:
    """
    Defaults: weakness 0.4, progress 0.3, preference 0.2, momentum 0.1.

    Order:
        1. trend declining/improving
        2. |momentum| > 10
        3. context.urgency == "high"
        4. context.focus == "tier_up"

    Without a pattern steps 1-2 are skipped, so an empty context yields the
    defaults unchanged.
    """
    weights = AdaptiveWeights()
    context = context or AnalysisContext()
    performance = pattern.performance if pattern is not None else None

    if performance is not None:
        if performance.trend == "declining":
            weights.weakness += 0.2
            weights.progress -= 0.1
        elif performance.trend == "improving":
            weights.progress += 0.2
            weights.weakness -= 0.1

        if abs(performance.momentum) > MOMENTUM_SWING:
            weights.momentum += 0.1
            weights.preference -= 0.05
            weights.weakness -= 0.05

    if context.urgency == "high":
        weights.weakness += 0.15
        weights.preference -= 0.15

    if context.focus == "tier_up":
        weights.progress += 0.2
        weights.weakness -= 0.1

    return weights
