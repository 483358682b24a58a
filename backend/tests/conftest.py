"""
Pytest configuration and fixtures for SolvedSense backend tests.

Provides:
- Test environment (template explainer, in-memory cache, generous rate limit)
- Mock solved.ac data and a fake client
- Analytics engine with an isolated learning-pattern tracker
- FastAPI test client with the engine dependency overridden
"""

import pytest
import os
from datetime import datetime, timezone
from typing import Generator, List

from fastapi.testclient import TestClient

# Set test environment before importing app
os.environ["EXPLAINER_BACKEND"] = "template"
os.environ["RATE_LIMIT_MAX_REQUESTS"] = "100000"
os.environ.pop("REDIS_URL", None)
os.environ.pop("SENTRY_DSN", None)
os.environ.pop("OPENAI_API_KEY", None)

from solvedsense.main import app
from solvedsense.dependencies.engine import get_analytics_engine
from solvedsense.schemas.analytics import LevelStat, TagStat, UserSnapshot
from solvedsense.services.analytics_engine import AnalyticsEngine
from solvedsense.services.explainer import TemplateExplainer
from solvedsense.services.learning_patterns import LearningPatternTracker
from solvedsense.utils.cache import reset_cache
from tests.mocks.solvedac_mocks import (
    FakeSolvedAcClient,
    mock_level_stats,
    mock_snapshot,
    mock_tag_stats,
)


@pytest.fixture(autouse=True)
def fresh_cache():
    """Every test starts with an empty process-wide cache."""
    reset_cache()
    yield
    reset_cache()


# =========================================================================
# Data Fixtures
# =========================================================================

@pytest.fixture
def snapshot() -> UserSnapshot:
    """Silver I, rating 740, 120 solved"""
    return mock_snapshot()


@pytest.fixture
def tag_stats() -> List[TagStat]:
    """Six tags; dp, graphs and greedy are weak"""
    return mock_tag_stats()


@pytest.fixture
def level_stats() -> List[LevelStat]:
    """Level 10 mastered, level 11 struggling"""
    return mock_level_stats()


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


# =========================================================================
# Engine Fixtures
# =========================================================================

@pytest.fixture
def fake_client() -> FakeSolvedAcClient:
    return FakeSolvedAcClient()


@pytest.fixture
def tracker() -> LearningPatternTracker:
    return LearningPatternTracker()


@pytest.fixture
def engine(fake_client: FakeSolvedAcClient, tracker: LearningPatternTracker) -> AnalyticsEngine:
    return AnalyticsEngine(fake_client, tracker=tracker, explainer=TemplateExplainer())


@pytest.fixture
def client(engine: AnalyticsEngine) -> Generator[TestClient, None, None]:
    """Provide FastAPI test client with the engine dependency overridden"""
    app.dependency_overrides[get_analytics_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
