"""
Analytics Engine

One async operation per analysis type. Every fetching operation:
1. reads profile, tag stats and level stats from solved.ac concurrently
2. applies exactly one learning-pattern update for the user
3. runs only the pure computations the operation needs

Upstream errors propagate unchanged; callers (router, CLI) decide how to
present them.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from solvedsense.schemas.analytics import (
    AnalysisContext,
    LevelStat,
    TagStat,
    UserSnapshot,
)
from solvedsense.services.difficulty import analyze_difficulty_performance
from solvedsense.services.explainer import Explainer, get_explainer
from solvedsense.services.learning_patterns import LearningPattern, LearningPatternTracker
from solvedsense.services.metrics import activity_pattern, difficulty_success, tag_accuracy, tier_name
from solvedsense.services.progress import track_learning_progress
from solvedsense.services.recommendation_engine import generate_recommendations
from solvedsense.services.solvedac_client import SolvedAcClient
from solvedsense.services.tier_predictor import predict_from_stats
from solvedsense.services.weakness import analyze_weakness, calculate_learning_priority

logger = logging.getLogger(__name__)


@dataclass
class UserStats:
    """Everything fetched for one request, plus the updated pattern."""
    snapshot: UserSnapshot
    tag_stats: List[TagStat]
    level_stats: List[LevelStat]
    pattern: LearningPattern


class AnalyticsEngine:
    """
    Usage:
        engine = AnalyticsEngine(SolvedAcClient())
        report = await engine.report("koosaga", AnalysisContext(mood="motivated"))
    """

    def __init__(
        self,
        client: SolvedAcClient,
        tracker: Optional[LearningPatternTracker] = None,
        explainer: Optional[Explainer] = None,
    ):
        self.client = client
        self.tracker = tracker if tracker is not None else LearningPatternTracker()
        self.explainer = explainer or get_explainer()

    async def _collect(self, handle: str) -> UserStats:
        snapshot, tag_stats, level_stats = await asyncio.gather(
            self.client.fetch_profile(handle),
            self.client.fetch_tag_stats(handle),
            self.client.fetch_level_stats(handle),
        )
        pattern = self.tracker.update(handle, snapshot, tag_stats)
        logger.info(
            "Collected stats for %s: tier=%s tags=%d levels=%d history=%d",
            handle, snapshot.tier, len(tag_stats), len(level_stats), len(pattern.history),
        )
        return UserStats(snapshot, tag_stats, level_stats, pattern)

    # =========================================================================
    # SECTIONS (pure, from already-collected stats)
    # =========================================================================

    async def _weakness_section(self, stats: UserStats) -> Dict:
        analysis = analyze_weakness(stats.tag_stats, stats.level_stats)
        return {
            "weakest_tags": [t.model_dump() for t in analysis["weakest_tags"]],
            "recommendations": analysis["recommendations"],
            "learning_priority": calculate_learning_priority(
                stats.tag_stats, stats.level_stats, stats.snapshot
            ),
            "summary": await self.explainer.weakness_summary(analysis["weakest_tags"]),
        }

    @staticmethod
    def _difficulty_section(stats: UserStats) -> Dict:
        return {
            **analyze_difficulty_performance(stats.level_stats, stats.snapshot.tier),
            "current_tier": tier_name(stats.snapshot.tier),
            "distribution": difficulty_success(stats.level_stats),
        }

    async def _recommendation_section(self, stats: UserStats, context: Optional[AnalysisContext]) -> Dict:
        recommendations = await generate_recommendations(
            stats.snapshot,
            stats.tag_stats,
            stats.level_stats,
            stats.pattern,
            context=context,
            explainer=self.explainer,
        )
        return recommendations.to_dict()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def profile(self, handle: str) -> Dict:
        """Profile and activity averages; does not touch the learning pattern."""
        snapshot = await self.client.fetch_profile(handle)
        return {
            **snapshot.model_dump(),
            "tier_name": tier_name(snapshot.tier),
            "activity": activity_pattern(snapshot),
        }

    async def weakness(self, handle: str) -> Dict:
        stats = await self._collect(handle)
        return {"handle": stats.snapshot.handle, **await self._weakness_section(stats)}

    async def progress(self, handle: str) -> Dict:
        stats = await self._collect(handle)
        return {
            "handle": stats.snapshot.handle,
            **track_learning_progress(stats.snapshot, stats.tag_stats, stats.level_stats),
        }

    async def difficulty(self, handle: str) -> Dict:
        stats = await self._collect(handle)
        return {"handle": stats.snapshot.handle, **self._difficulty_section(stats)}

    async def recommendations(self, handle: str, context: Optional[AnalysisContext] = None) -> Dict:
        stats = await self._collect(handle)
        return {
            "handle": stats.snapshot.handle,
            **await self._recommendation_section(stats, context),
        }

    async def tier_prediction(self, handle: str) -> Dict:
        stats = await self._collect(handle)
        return {
            "handle": stats.snapshot.handle,
            "current_tier": tier_name(stats.snapshot.tier),
            **predict_from_stats(stats.snapshot, stats.tag_stats, stats.level_stats),
        }

    async def learning_pattern(self, handle: str) -> Dict:
        """Stored pattern only; no fetch and no update."""
        return self.tracker.summary(handle)

    async def report(self, handle: str, context: Optional[AnalysisContext] = None) -> Dict:
        """Every analysis from a single fetch and a single pattern update."""
        stats = await self._collect(handle)
        snapshot = stats.snapshot

        return {
            "handle": snapshot.handle,
            "profile": {
                **snapshot.model_dump(),
                "tier_name": tier_name(snapshot.tier),
            },
            "tag_accuracy": tag_accuracy(stats.tag_stats),
            "weakness": await self._weakness_section(stats),
            "progress": track_learning_progress(snapshot, stats.tag_stats, stats.level_stats),
            "difficulty": self._difficulty_section(stats),
            "tier_prediction": predict_from_stats(snapshot, stats.tag_stats, stats.level_stats),
            "recommendations": await self._recommendation_section(stats, context),
            "learning_pattern": {
                "trend": stats.pattern.performance.trend,
                "momentum": stats.pattern.performance.momentum,
                "history_entries": len(stats.pattern.history),
            },
        }
