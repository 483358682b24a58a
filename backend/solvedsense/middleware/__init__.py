"""
SolvedSense Middleware Package

Contains:
- rate_limiter: Sliding-window limiter and the per-client HTTP middleware
"""

from solvedsense.middleware.rate_limiter import (
    RateLimitMiddleware,
    SlidingWindowLimiter,
    limiter_from_env,
)

__all__ = [
    "RateLimitMiddleware",
    "SlidingWindowLimiter",
    "limiter_from_env",
]
