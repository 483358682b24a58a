"""
SolvedSense Utilities Package

Contains:
- cache: Hybrid Redis / in-memory response cache
- openai_client: Lazy-initialized async OpenAI client
"""

from solvedsense.utils.cache import HybridCache, TTLCache, get_cache, reset_cache
from solvedsense.utils.openai_client import get_async_openai_client, reset_client

__all__ = [
    "HybridCache",
    "TTLCache",
    "get_cache",
    "reset_cache",
    "get_async_openai_client",
    "reset_client",
]
