"""
Staleness cache interface.

A cache holds at most one CacheData snapshot. A snapshot is fresh while
its age (now minus its capture timestamp) is below the TTL; after that the
cache reports a miss and the caller re-scans. ``set()`` always replaces the
previous snapshot; concurrent setters race and the last write wins, which
is fine because every snapshot is a complete, self-consistent sync.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from plandash.core.dashboard.models import CacheData, SyncData

DEFAULT_TTL_SECONDS = 300


class SnapshotCache(ABC):
    """Base class for snapshot caches with a fixed time-to-live."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            ttl_seconds: Seconds a snapshot stays fresh
            clock: Wall-clock source returning epoch seconds
        """
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _stamp(self, data: SyncData) -> CacheData:
        return CacheData(
            projects=data.projects,
            tasks=data.tasks,
            outputs=data.outputs,
            last_sync=data.last_sync,
            timestamp=self.clock(),
        )

    def _age(self, data: CacheData) -> float:
        return self.clock() - data.timestamp

    def _is_fresh(self, data: CacheData) -> bool:
        return self._age(data) < self.ttl_seconds

    @abstractmethod
    def get(self) -> CacheData | None:
        """Return the snapshot if present and fresh, else None."""

    @abstractmethod
    def set(self, data: SyncData) -> CacheData:
        """Store a new snapshot stamped with the current time."""

    @abstractmethod
    def clear(self) -> None:
        """Discard the snapshot."""

    def is_valid(self) -> bool:
        """Check whether a fresh snapshot is available."""
        return self.get() is not None

    def get_age(self) -> int:
        """
        Get the age of the fresh snapshot in whole seconds.

        Returns:
            Age in seconds, or -1 if there is no fresh snapshot
        """
        data = self.get()
        if data is None:
            return -1
        return round(self._age(data))

    def ping(self) -> bool:
        """Check that the cache is reachable."""
        return True

    def close(self) -> None:
        """Release any resources held by the cache."""
