"""
Learning Pattern Tracker

Keeps a per-user learning pattern for the lifetime of the process:
- Progress deltas between consecutive profile snapshots (30-day retention)
- Tag preference scores (accuracy + volume)
- Trend and momentum over the most recent history entries

Each user moves from "uninitialized" to "tracking" on the first update. The
first update has nothing to diff against, so it records no progress entry.

Updates for the same user are serialized through a per-key lock in the
pattern store, so concurrent requests cannot lose or interleave entries.
State is in-memory only and is lost on restart.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from solvedsense.schemas.analytics import TagStat, UserSnapshot
from solvedsense.services.metrics import coerce_tag_stats

logger = logging.getLogger(__name__)


RETENTION_WINDOW = timedelta(days=30)
TREND_WINDOW = 7
MOMENTUM_WEIGHTS = (0.5, 0.3, 0.2)
TREND_THRESHOLD = 5
PREFERENCE_VOLUME_CAP = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# PATTERN STATE
# =============================================================================

@dataclass(frozen=True)
class ProgressEntry:
    """Change between two consecutive snapshots of the same user."""
    timestamp: datetime
    rating_change: int = 0
    solved_count_change: int = 0
    tier_change: int = 0
    streak_change: int = 0


@dataclass(frozen=True)
class PreferenceScore:
    score: float
    accuracy: float
    volume: int
    updated_at: datetime


@dataclass(frozen=True)
class PerformancePattern:
    trend: str = "insufficient_data"  # improving | declining | stable | insufficient_data
    momentum: float = 0.0
    avg_rating_change: float = 0.0
    avg_solved_change: float = 0.0


@dataclass
class LearningPattern:
    history: List[ProgressEntry] = field(default_factory=list)
    preferences: Dict[str, PreferenceScore] = field(default_factory=dict)
    performance: PerformancePattern = field(default_factory=PerformancePattern)
    last_snapshot: Optional[UserSnapshot] = None
    last_updated: Optional[datetime] = None

    def copy(self) -> "LearningPattern":
        # Entries, scores and snapshots are immutable; only the containers are copied
        return LearningPattern(
            history=list(self.history),
            preferences=dict(self.preferences),
            performance=self.performance,
            last_snapshot=self.last_snapshot,
            last_updated=self.last_updated,
        )

    def to_dict(self) -> Dict:
        return {
            "history": [
                {**asdict(entry), "timestamp": entry.timestamp.isoformat()}
                for entry in self.history
            ],
            "preferences": {
                tag: {**asdict(pref), "updated_at": pref.updated_at.isoformat()}
                for tag, pref in self.preferences.items()
            },
            "performance": asdict(self.performance),
            "last_snapshot": self.last_snapshot.model_dump() if self.last_snapshot else None,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


# =============================================================================
# PURE PATTERN MATH
# =============================================================================

def progress_delta(previous: UserSnapshot, current: UserSnapshot, timestamp: datetime) -> ProgressEntry:
    return ProgressEntry(
        timestamp=timestamp,
        rating_change=current.rating - previous.rating,
        solved_count_change=current.solved_count - previous.solved_count,
        tier_change=current.tier - previous.tier,
        streak_change=current.max_streak - previous.max_streak,
    )


def score_preferences(
    tag_stats: Optional[Sequence[TagStat]],
    current: Dict[str, PreferenceScore],
    now: datetime,
) -> Dict[str, PreferenceScore]:
    """
    0.7 * accuracy + 0.3 * min(tried / 20, 1) for every reported tag.

    Reported tags overwrite their previous score; tags missing from this
    snapshot keep whatever score they had.
    """
    preferences = dict(current)
    for stat in coerce_tag_stats(tag_stats):
        accuracy = stat.accuracy
        volume_factor = min(stat.tried / PREFERENCE_VOLUME_CAP, 1)
        preferences[stat.tag] = PreferenceScore(
            score=accuracy * 0.7 + volume_factor * 0.3,
            accuracy=accuracy,
            volume=stat.tried,
            updated_at=now,
        )
    return preferences


def calculate_momentum(window: Sequence[ProgressEntry]) -> float:
    """Recency-weighted (rating change + 2 * solved change) over the last three entries."""
    momentum = 0.0
    for weight, entry in zip(MOMENTUM_WEIGHTS, reversed(window)):
        momentum += (entry.rating_change + entry.solved_count_change * 2) * weight
    return momentum


def analyze_performance(history: Sequence[ProgressEntry]) -> PerformancePattern:
    """Recomputed from scratch over the last seven entries on every update."""
    if len(history) < 2:
        return PerformancePattern()

    window = list(history)[-TREND_WINDOW:]
    avg_rating = sum(e.rating_change for e in window) / len(window)
    avg_solved = sum(e.solved_count_change for e in window) / len(window)

    trend = "stable"
    if avg_rating > TREND_THRESHOLD:
        trend = "improving"
    elif avg_rating < -TREND_THRESHOLD:
        trend = "declining"

    return PerformancePattern(
        trend=trend,
        momentum=calculate_momentum(window),
        avg_rating_change=avg_rating,
        avg_solved_change=avg_solved,
    )


# =============================================================================
# PATTERN STORE
# =============================================================================

class PatternStore(ABC):
    """Keyed pattern storage with atomic read-modify-write per key."""

    @abstractmethod
    def get(self, key: str) -> Optional[LearningPattern]:
        ...

    @abstractmethod
    def update(
        self,
        key: str,
        mutate: Callable[[Optional[LearningPattern]], LearningPattern],
    ) -> LearningPattern:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryPatternStore(PatternStore):
    """
    Process-local store; one lock per user key.

    Locks are reference counted and dropped once no caller holds or waits on
    them and the key has no stored pattern.
    """

    def __init__(self):
        self._patterns: Dict[str, LearningPattern] = {}
        # {key: [lock, callers holding or waiting]}
        self._locks: Dict[str, list] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def _locked(self, key: str) -> Iterator[None]:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._registry_lock:
                entry[1] -= 1
                if entry[1] == 0 and key not in self._patterns:
                    self._locks.pop(key, None)

    def get(self, key: str) -> Optional[LearningPattern]:
        with self._locked(key):
            pattern = self._patterns.get(key)
            return pattern.copy() if pattern else None

    def update(self, key, mutate):
        with self._locked(key):
            current = self._patterns.get(key)
            updated = mutate(current.copy() if current else None)
            self._patterns[key] = updated
            return updated.copy()

    def delete(self, key: str) -> bool:
        with self._locked(key):
            return self._patterns.pop(key, None) is not None

    def clear(self) -> None:
        with self._registry_lock:
            self._patterns.clear()
            self._locks = {key: entry for key, entry in self._locks.items() if entry[1] > 0}

    def lock_count(self) -> int:
        with self._registry_lock:
            return len(self._locks)

    def __len__(self) -> int:
        return len(self._patterns)


# =============================================================================
# TRACKER
# =============================================================================

class LearningPatternTracker:
    """
    Applies snapshots to the per-user learning pattern.

    Usage:
        tracker = LearningPatternTracker()
        pattern = tracker.update("koosaga", snapshot, tag_stats)
        pattern.performance.trend  # "insufficient_data" until two entries exist
    """

    def __init__(
        self,
        store: Optional[PatternStore] = None,
        retention: timedelta = RETENTION_WINDOW,
    ):
        self.store = store if store is not None else InMemoryPatternStore()
        self.retention = retention

    @staticmethod
    def _key(handle: str) -> str:
        # solved.ac handles are case-insensitive
        return handle.strip().lower()

    def update(
        self,
        handle: str,
        snapshot: UserSnapshot,
        tag_stats: Optional[Sequence[TagStat]] = None,
        now: Optional[datetime] = None,
    ) -> LearningPattern:
        now = now or utcnow()

        def mutate(pattern: Optional[LearningPattern]) -> LearningPattern:
            if pattern is None:
                logger.info("Tracking learning pattern for %s", handle)
                pattern = LearningPattern()

            if pattern.last_snapshot is not None:
                pattern.history.append(progress_delta(pattern.last_snapshot, snapshot, now))

            pattern.history = [
                entry for entry in pattern.history
                if now - entry.timestamp < self.retention
            ]
            pattern.preferences = score_preferences(tag_stats, pattern.preferences, now)
            pattern.performance = analyze_performance(pattern.history)
            pattern.last_snapshot = snapshot
            pattern.last_updated = now
            return pattern

        return self.store.update(self._key(handle), mutate)

    def get(self, handle: str) -> Optional[LearningPattern]:
        return self.store.get(self._key(handle))

    def reset(self, handle: str) -> bool:
        return self.store.delete(self._key(handle))

    def clear(self) -> None:
        self.store.clear()

    def summary(self, handle: str) -> Dict:
        """Serializable view of the stored pattern (no update)."""
        pattern = self.get(handle)
        if pattern is None:
            return {"handle": handle, "state": "uninitialized", "pattern": None}
        return {"handle": handle, "state": "tracking", "pattern": pattern.to_dict()}
