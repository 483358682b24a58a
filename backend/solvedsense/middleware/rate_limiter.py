"""
Rate Limiting for SolvedSense

Two sliding-window limits:
- Inbound: per client IP on the HTTP API (default 100 requests / 15 minutes)
- Outbound: a single global budget for solved.ac calls (default 200 / 15 minutes)

Both are in-memory and reset on server restart.
"""

import os
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_SECONDS = 900

# Paths that are never limited (monitoring)
EXEMPT_PATHS = ("/", "/health")


# ============================================================================
# SLIDING WINDOW
# ============================================================================

class SlidingWindowLimiter:
    """
    Sliding-window request counter keyed by an arbitrary identifier.

    Usage:
        limiter = SlidingWindowLimiter(max_requests=100, window_seconds=900)
        allowed, retry_after = limiter.hit(client_ip)
        if not allowed:
            ...  # reject, tell the caller to wait retry_after seconds
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # {key: [timestamp1, timestamp2, ...]}; keys with an empty window are dropped
        self._requests: Dict[str, List[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _prune(self, key: str, now: float) -> List[float]:
        recent = [t for t in self._requests.get(key, ()) if now - t < self.window_seconds]
        if recent:
            self._requests[key] = recent
        else:
            self._requests.pop(key, None)
        return recent

    def _sweep(self, now: float) -> None:
        # Caller holds the lock; drops clients that have not returned within a window
        if now - self._last_sweep < self.window_seconds:
            return
        for key in list(self._requests):
            self._prune(key, now)
        self._last_sweep = now

    def hit(self, key: str = "global") -> Tuple[bool, int]:
        """
        Count a request if the window has room.

        Returns:
            (allowed, seconds_to_wait). seconds_to_wait is 0 when allowed.
        """
        with self._lock:
            now = self._clock()
            self._sweep(now)
            recent = self._prune(key, now)

            if len(recent) >= self.max_requests:
                oldest = recent[0] if recent else now
                return False, int(self.window_seconds - (now - oldest)) + 1

            recent.append(now)
            self._requests[key] = recent
            return True, 0

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._requests)

    def remaining(self, key: str = "global") -> int:
        with self._lock:
            return max(0, self.max_requests - len(self._prune(key, self._clock())))

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._requests.clear()
            else:
                self._requests.pop(key, None)


def limiter_from_env(prefix: str, default_max: int, default_window: int) -> SlidingWindowLimiter:
    return SlidingWindowLimiter(
        max_requests=int(os.getenv(f"{prefix}_MAX_REQUESTS", default_max)),
        window_seconds=int(os.getenv(f"{prefix}_WINDOW_SECONDS", default_window)),
    )


# ============================================================================
# MIDDLEWARE
# ============================================================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client-IP limit on the HTTP API."""

    def __init__(self, app, limiter: Optional[SlidingWindowLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or limiter_from_env(
            "RATE_LIMIT", DEFAULT_MAX_REQUESTS, DEFAULT_WINDOW_SECONDS
        )

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = self._client_ip(request)
        allowed, retry_after = self.limiter.hit(client_ip)

        if not allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate limit exceeded",
                    "message": "Too many requests, please try again later",
                    "limit": self.limiter.max_requests,
                    "retry_after": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.limiter.max_requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(self.limiter.remaining(client_ip))
        return response

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"
