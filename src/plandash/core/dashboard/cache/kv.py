"""
Redis-backed snapshot cache shared across processes and restarts.

The snapshot is stored as one JSON value under a fixed key with a
server-side expiry equal to the TTL. Freshness is still checked against the
embedded capture timestamp, so both sides agree on when data is stale.

Redis is treated as best-effort: read errors are cache misses and write
errors are logged, never raised to the request that triggered them.

Example:
    cache = RedisCache("redis://localhost:6379/0")
    cache.set(scanner.scan())
    data = cache.get()  # None on miss, expiry or Redis failure
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import redis
from pydantic import ValidationError

from plandash.core.dashboard.cache.base import DEFAULT_TTL_SECONDS, SnapshotCache
from plandash.core.dashboard.models import CacheData, SyncData

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "planning:dashboard:data"


class RedisCache(SnapshotCache):
    """
    Snapshot cache persisted in Redis.

    Args:
        url: Redis connection string (redis://host:port/db or rediss://...)
        key: Key holding the snapshot
        client: Pre-built client (anything with get/set/delete/close);
            built from ``url`` when omitted
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        key: str = DEFAULT_CACHE_KEY,
        client: Any | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        if client is None:
            if not url:
                raise ValueError("RedisCache requires a url or a client")
            client = redis.Redis.from_url(url, socket_timeout=2.0, socket_connect_timeout=2.0)
        self.key = key
        self._client = client

    def get(self) -> CacheData | None:
        try:
            raw = self._client.get(self.key)
        except redis.RedisError as e:
            logger.error(f"Error reading from Redis: {e}")
            return None

        if not raw:
            logger.debug("KV cache miss")
            return None

        try:
            data = CacheData.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable KV cache entry: {e.error_count()} error(s)")
            return None

        if not self._is_fresh(data):
            logger.info("KV cache expired")
            return None

        logger.debug(f"KV cache hit (age: {round(self._age(data))}s)")
        return data

    def set(self, data: SyncData) -> CacheData:
        stamped = self._stamp(data)
        try:
            self._client.set(
                self.key,
                stamped.model_dump_json(by_alias=True),
                ex=self.ttl_seconds,
            )
            logger.info("KV cache updated")
        except redis.RedisError as e:
            logger.error(f"Error writing to Redis: {e}")
        return stamped

    def clear(self) -> None:
        try:
            self._client.delete(self.key)
            logger.info("KV cache cleared")
        except redis.RedisError as e:
            logger.error(f"Error clearing KV cache: {e}")

    def ping(self) -> bool:
        """Check that Redis answers."""
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    def close(self) -> None:
        self._client.close()
