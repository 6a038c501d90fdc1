"""Process-local snapshot cache. Lost on restart."""

import logging
import time
from collections.abc import Callable

from plandash.core.dashboard.cache.base import DEFAULT_TTL_SECONDS, SnapshotCache
from plandash.core.dashboard.models import CacheData, SyncData

logger = logging.getLogger(__name__)


class MemoryCache(SnapshotCache):
    """
    In-memory snapshot cache.

    Only consistent within one running process.

    Example:
        >>> cache = MemoryCache(ttl_seconds=300)
        >>> _ = cache.set(SyncData())
        >>> cache.is_valid()
        True
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self._data: CacheData | None = None

    def get(self) -> CacheData | None:
        data = self._data
        if data is None:
            return None

        if not self._is_fresh(data):
            logger.info("Cache expired")
            return None

        logger.debug(f"Cache hit (age: {round(self._age(data))}s)")
        return data

    def set(self, data: SyncData) -> CacheData:
        self._data = self._stamp(data)
        logger.info("Cache updated")
        return self._data

    def clear(self) -> None:
        self._data = None
        logger.info("Cache cleared")
