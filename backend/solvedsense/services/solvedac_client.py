"""
solved.ac API Client

Async reads of the three statistics the analytics engine needs:
- GET /user/show                -> UserSnapshot
- GET /user/problem_tag_stats   -> List[TagStat]
- GET /user/problem_stats       -> List[LevelStat]

Raw JSON responses are cached (profile and tags 10 minutes, levels
5 minutes). A global sliding window keeps us under solved.ac's request
budget and fails fast instead of queueing. No retries: failures surface to
the caller as one of the Upstream* exceptions below.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from solvedsense.middleware.rate_limiter import SlidingWindowLimiter, limiter_from_env
from solvedsense.schemas.analytics import LevelStat, TagStat, UserSnapshot
from solvedsense.services.metrics import MAX_TIER, coerce_level_stats, coerce_tag_stats
from solvedsense.utils.cache import HybridCache, get_cache

logger = logging.getLogger(__name__)


DEFAULT_API_URL = "https://solved.ac/api/v3"
DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRY_AFTER = 60
USER_AGENT = "SolvedSense/1.0"

PROFILE_TTL = 600
TAG_STATS_TTL = 600
LEVEL_STATS_TTL = 300

UPSTREAM_MAX_REQUESTS = 200
UPSTREAM_WINDOW_SECONDS = 900


# =============================================================================
# ERRORS
# =============================================================================

class UpstreamError(Exception):
    """solved.ac returned something we cannot use."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamNotFoundError(UpstreamError):
    """The handle does not exist on solved.ac."""


class UpstreamRateLimitedError(UpstreamError):
    """solved.ac (or our own outbound budget) asked us to back off."""

    def __init__(self, message: str, retry_after: int = DEFAULT_RETRY_AFTER):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class UpstreamUnavailableError(UpstreamError):
    """Network failure or 5xx; safe for the caller to retry later."""


def _parse_retry_after(value: Optional[str]) -> int:
    try:
        return max(0, int(value)) if value is not None else DEFAULT_RETRY_AFTER
    except ValueError:
        return DEFAULT_RETRY_AFTER


# =============================================================================
# RESPONSE PARSING
# =============================================================================

def parse_profile(handle: str, data: Any) -> UserSnapshot:
    if not isinstance(data, dict):
        raise UpstreamError(f"Unexpected profile payload for {handle}")
    try:
        return UserSnapshot(
            handle=data.get("handle") or handle,
            # Master (31) is reported above Ruby I; analytics stop at Ruby I
            tier=min(int(data.get("tier") or 0), MAX_TIER),
            rating=int(data.get("rating") or 0),
            solved_count=int(data.get("solvedCount") or 0),
            max_streak=int(data.get("maxStreak") or 0),
        )
    except (TypeError, ValueError, ValidationError) as e:
        raise UpstreamError(f"Malformed profile for {handle}: {e}") from e


def parse_tag_stats(data: Any) -> List[TagStat]:
    """Accepts a bare list or a paginated {"items": [...]} body."""
    items = data.get("items") if isinstance(data, dict) else data
    if not isinstance(items, list):
        logger.warning("Tag stats payload is not a list; treating as empty")
        return []

    rows = []
    for item in items:
        if not isinstance(item, dict):
            continue
        tag = item.get("tag")
        key = tag.get("key") if isinstance(tag, dict) else tag
        rows.append({"tag": key, "solved": item.get("solved", 0), "tried": item.get("tried", 0)})
    return coerce_tag_stats(rows)


def parse_level_stats(data: Any) -> List[LevelStat]:
    if not isinstance(data, list):
        logger.warning("Level stats payload is not a list; treating as empty")
        return []
    rows = [
        {"level": item.get("level"), "solved": item.get("solved", 0), "tried": item.get("tried", 0)}
        for item in data if isinstance(item, dict)
    ]
    return coerce_level_stats(rows)


# =============================================================================
# CLIENT
# =============================================================================

class SolvedAcClient:
    """
    Usage:
        async with SolvedAcClient() as client:
            snapshot = await client.fetch_profile("koosaga")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[HybridCache] = None,
        limiter: Optional[SlidingWindowLimiter] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or os.getenv("SOLVEDAC_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout or float(os.getenv("SOLVEDAC_TIMEOUT", DEFAULT_TIMEOUT))
        self.cache = cache if cache is not None else get_cache()
        self.limiter = limiter or limiter_from_env(
            "SOLVEDAC", UPSTREAM_MAX_REQUESTS, UPSTREAM_WINDOW_SECONDS
        )
        self._http = http_client
        self._owns_http = http_client is None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "SolvedAcClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get_json(self, path: str, handle: str, cache_key: str, ttl: int) -> Any:
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit: {cache_key}")
            return cached

        allowed, retry_after = self.limiter.hit("solvedac")
        if not allowed:
            logger.warning(f"Outbound solved.ac budget exhausted, retry in {retry_after}s")
            raise UpstreamRateLimitedError("solved.ac request budget exhausted", retry_after)

        try:
            response = await self._client().get(path, params={"handle": handle})
        except httpx.TransportError as e:
            logger.warning(f"solved.ac request failed: {path} - {e}")
            raise UpstreamUnavailableError(f"solved.ac unreachable: {e}") from e

        status = response.status_code
        logger.info(f"solved.ac {path} handle={handle} - {status}")

        if status == 404:
            raise UpstreamNotFoundError(f"User '{handle}' not found", status_code=404)
        if status == 429:
            retry = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"solved.ac rate limit hit, retry after {retry}s")
            raise UpstreamRateLimitedError("solved.ac rate limit exceeded", retry)
        if status >= 500:
            raise UpstreamUnavailableError(f"solved.ac returned {status}", status_code=status)
        if not response.is_success:
            raise UpstreamError(f"solved.ac returned {status}", status_code=status)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"solved.ac returned invalid JSON for {path}") from e

        self.cache.set(cache_key, data, ttl)
        return data

    @staticmethod
    def _key(kind: str, handle: str) -> str:
        return f"solvedac:{kind}:{handle.strip().lower()}"

    async def fetch_profile(self, handle: str) -> UserSnapshot:
        data = await self._get_json("/user/show", handle, self._key("profile", handle), PROFILE_TTL)
        return parse_profile(handle, data)

    async def fetch_tag_stats(self, handle: str) -> List[TagStat]:
        data = await self._get_json(
            "/user/problem_tag_stats", handle, self._key("tags", handle), TAG_STATS_TTL
        )
        return parse_tag_stats(data)

    async def fetch_level_stats(self, handle: str) -> List[LevelStat]:
        data = await self._get_json(
            "/user/problem_stats", handle, self._key("levels", handle), LEVEL_STATS_TTL
        )
        return parse_level_stats(data)
