"""
Mock infrastructure for SolvedSense testing.
Provides deterministic solved.ac data and a fake client.
"""

from .solvedac_mocks import (
    FakeSolvedAcClient,
    MOCK_LEVEL_STATS,
    MOCK_PROFILE,
    MOCK_TAG_STATS,
    mock_level_stats,
    mock_snapshot,
    mock_tag_stats,
)

__all__ = [
    "FakeSolvedAcClient",
    "MOCK_LEVEL_STATS",
    "MOCK_PROFILE",
    "MOCK_TAG_STATS",
    "mock_level_stats",
    "mock_snapshot",
    "mock_tag_stats",
]
