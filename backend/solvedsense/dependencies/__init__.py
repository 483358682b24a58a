"""
FastAPI Dependencies for SolvedSense
"""

from solvedsense.dependencies.engine import (
    get_analytics_engine,
    close_analytics_engine,
)

__all__ = [
    "get_analytics_engine",
    "close_analytics_engine",
]
