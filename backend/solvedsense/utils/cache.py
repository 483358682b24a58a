"""
Hybrid response cache: Redis when REDIS_URL is reachable, in-memory otherwise.

Holds raw solved.ac JSON so repeated analyses of the same handle do not hit
the upstream API (and its request budget) again within the TTL.

Usage:
    from solvedsense.utils.cache import get_cache

    cache = get_cache()
    cache.set("solvedac:profile:koosaga", payload, ttl=600)
    cache.get("solvedac:profile:koosaga")
"""

import os
import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import redis

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300


class TTLCache:
    """Thread-safe in-memory cache with per-entry expiry."""

    def __init__(self, maxsize: int = 1000, default_ttl: int = DEFAULT_TTL):
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self.maxsize = maxsize
        self.default_ttl = default_ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() < expires_at:
                return value
            del self._entries[key]
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = ttl or self.default_ttl
        with self._lock:
            if len(self._entries) >= self.maxsize and key not in self._entries:
                self._evict_soonest()
            self._entries[key] = (value, time.monotonic() + ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_soonest(self) -> None:
        # Caller holds the lock
        if self._entries:
            key = min(self._entries.items(), key=lambda item: item[1][1])[0]
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """Redis-backed cache with JSON serialization. Disabled when unreachable."""

    def __init__(self, redis_url: Optional[str] = None, default_ttl: int = DEFAULT_TTL):
        self.default_ttl = default_ttl
        self._client = None
        self._redis_url = redis_url or os.getenv("REDIS_URL")

        if self._redis_url:
            try:
                self._client = redis.from_url(
                    self._redis_url,
                    decode_responses=True,
                    socket_timeout=5,
                    socket_connect_timeout=5,
                )
                self._client.ping()
                logger.info("Redis cache connected")
            except (redis.RedisError, ValueError) as e:
                logger.warning(f"Redis connection failed, using in-memory cache: {e}")
                self._client = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def get(self, key: str) -> Optional[Any]:
        if not self._client:
            return None
        try:
            data = self._client.get(key)
            if data:
                return json.loads(data)
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis get error: {e}")
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self._client:
            return False
        try:
            self._client.setex(key, ttl or self.default_ttl, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.warning(f"Redis set error: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self._client:
            return False
        try:
            return self._client.delete(key) > 0
        except redis.RedisError as e:
            logger.warning(f"Redis delete error: {e}")
            return False

    def clear(self, pattern: str = "solvedac:*") -> None:
        if not self._client:
            return
        try:
            keys = self._client.keys(pattern)
            if keys:
                self._client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Redis clear error: {e}")


class HybridCache:
    """
    Redis in production (shared between workers), in-memory in development.
    """

    def __init__(self, maxsize: int = 1000, default_ttl: int = DEFAULT_TTL, redis_url: Optional[str] = None):
        self.default_ttl = default_ttl
        self._redis = RedisCache(redis_url=redis_url, default_ttl=default_ttl)
        self._local = TTLCache(maxsize=maxsize, default_ttl=default_ttl)

    @property
    def backend(self) -> str:
        return "redis" if self._redis.is_connected else "memory"

    def get(self, key: str) -> Optional[Any]:
        if self._redis.is_connected:
            return self._redis.get(key)
        return self._local.get(key)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = ttl or self.default_ttl
        if self._redis.is_connected:
            self._redis.set(key, value, ttl)
        else:
            self._local.set(key, value, ttl)

    def delete(self, key: str) -> bool:
        if self._redis.is_connected:
            return self._redis.delete(key)
        return self._local.delete(key)

    def clear(self) -> None:
        if self._redis.is_connected:
            self._redis.clear()
        else:
            self._local.clear()


_cache: Optional[HybridCache] = None


def get_cache() -> HybridCache:
    """Process-wide cache, built on first use so env vars are read after dotenv."""
    global _cache
    if _cache is None:
        _cache = HybridCache(default_ttl=int(os.getenv("CACHE_TTL", DEFAULT_TTL)))
        logger.info(f"Response cache backend: {_cache.backend}")
    return _cache


def reset_cache() -> None:
    global _cache
    _cache = None
