"""
Analytics engine dependency.

One engine per process: the learning-pattern tracker lives inside it, so
every request must see the same instance. Tests swap it out through
``app.dependency_overrides[get_analytics_engine]``.
"""

import logging
import threading
from typing import Optional

from solvedsense.services.analytics_engine import AnalyticsEngine
from solvedsense.services.solvedac_client import SolvedAcClient

logger = logging.getLogger(__name__)

_engine: Optional[AnalyticsEngine] = None
_engine_lock = threading.Lock()


def get_analytics_engine() -> AnalyticsEngine:
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = AnalyticsEngine(SolvedAcClient())
            logger.info("Analytics engine initialized (explainer=%s)", type(_engine.explainer).__name__)
        return _engine


async def close_analytics_engine() -> None:
    """Release the HTTP connection pool on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.client.aclose()
        _engine = None
