"""
Backends publishing sync results and serving them to the API.

A running instance uses exactly one backend:

- StoreBackend: records live in the durable ProjectStore; freshness is the
  age of the last recorded sync.
- CacheBackend: records live in a SnapshotCache; reads go through the
  cache and a miss re-scans the planning directory.

Both apply the same filter whitelist and ordering, so the API behaves the
same whichever backend is configured.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, TypeVar

from plandash.core.dashboard.cache import SnapshotCache
from plandash.core.dashboard.cache.base import DEFAULT_TTL_SECONDS
from plandash.core.dashboard.db.store import OUTPUTS, PROJECTS, TASKS, ProjectStore, RecordKind
from plandash.core.dashboard.models import (
    CacheData,
    HealthStatus,
    Output,
    Project,
    RecordModel,
    SyncData,
    Task,
    validate_filters,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RecordModel)


def _field_value(record: RecordModel, field: str) -> Any:
    value = getattr(record, field)
    return value.value if isinstance(value, Enum) else value


def filter_records(
    kind: RecordKind[R],
    records: Sequence[R],
    filters: dict[str, Any] | None,
) -> list[R]:
    """
    Filter and order records in memory the way the store does.

    Args:
        kind: Record kind supplying the whitelist and sort column
        records: Records to filter
        filters: Exact-match filters

    Returns:
        Matching records, most recent first, ties ordered by key

    Raises:
        ValueError: If a filter field is not allowed
    """
    where = validate_filters(filters, kind.filters)
    matches = [
        record
        for record in records
        if all(_field_value(record, field) == value for field, value in where.items())
    ]
    matches.sort(key=lambda r: tuple(str(_field_value(r, f)) for f in kind.key))
    matches.sort(key=lambda r: _field_value(r, kind.sort_column) or "", reverse=True)
    return matches


class DashboardBackend(ABC):
    """Interface shared by the store and cache backends."""

    name: str = "backend"

    @abstractmethod
    def publish(self, data: SyncData) -> dict[str, int]:
        """
        Make a complete sync visible to readers.

        Returns:
            Count of published records per kind
        """

    @abstractmethod
    def is_fresh(self) -> bool:
        """Check whether published data is younger than the TTL."""

    @abstractmethod
    def age(self) -> int:
        """Seconds since the last publish, or -1 if nothing is published."""

    @abstractmethod
    def last_sync(self) -> str | None:
        """ISO timestamp of the published data, if any."""

    @abstractmethod
    def list_projects(self, filters: dict[str, Any] | None = None) -> list[Project]: ...

    @abstractmethod
    def list_tasks(self, filters: dict[str, Any] | None = None) -> list[Task]: ...

    @abstractmethod
    def list_outputs(self, filters: dict[str, Any] | None = None) -> list[Output]: ...

    @abstractmethod
    def get_project(self, slug: str) -> Project | None: ...

    @abstractmethod
    def counts(self) -> dict[str, int]:
        """Count published records per kind."""

    @abstractmethod
    def health(self) -> HealthStatus: ...

    def close(self) -> None:
        """Release backend resources."""


class StoreBackend(DashboardBackend):
    """
    Backend serving records from the durable store.

    Args:
        store: Durable record store
        ttl_seconds: Age below which the last sync counts as fresh
        clock: Epoch-seconds clock (defaults to the store's clock)
    """

    name = "store"

    def __init__(
        self,
        store: ProjectStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock or store.clock

    def _sync_age(self) -> float | None:
        info = self.store.last_sync_info()
        if not info or info.get("synced_at") is None:
            return None
        return self.clock() - float(info["synced_at"])

    def publish(self, data: SyncData) -> dict[str, int]:
        return self.store.sync_all(data)

    def is_fresh(self) -> bool:
        age = self._sync_age()
        return age is not None and age < self.ttl_seconds

    def age(self) -> int:
        age = self._sync_age()
        return -1 if age is None else round(age)

    def last_sync(self) -> str | None:
        info = self.store.last_sync_info()
        return info["last_sync"] if info else None

    def list_projects(self, filters: dict[str, Any] | None = None) -> list[Project]:
        return self.store.get_projects(filters)

    def list_tasks(self, filters: dict[str, Any] | None = None) -> list[Task]:
        return self.store.get_tasks(filters)

    def list_outputs(self, filters: dict[str, Any] | None = None) -> list[Output]:
        return self.store.get_outputs(filters)

    def get_project(self, slug: str) -> Project | None:
        return self.store.get_project(slug)

    def counts(self) -> dict[str, int]:
        return self.store.get_all_stats()

    def health(self) -> HealthStatus:
        return self.store.health_check()

    def close(self) -> None:
        self.store.close()


class CacheBackend(DashboardBackend):
    """
    Read-through backend over a snapshot cache.

    Args:
        cache: Snapshot cache holding the published data
        loader: Produces a fresh SyncData on a cache miss (normally a scan)
    """

    name = "cache"

    def __init__(self, cache: SnapshotCache, loader: Callable[[], SyncData]) -> None:
        self.cache = cache
        self.loader = loader

    def snapshot(self) -> CacheData:
        """Return the cached snapshot, re-loading it on a miss."""
        data = self.cache.get()
        if data is None:
            logger.info("Cache miss, reloading planning data")
            data = self.cache.set(self.loader())
        return data

    def publish(self, data: SyncData) -> dict[str, int]:
        return self.cache.set(data).counts

    def is_fresh(self) -> bool:
        return self.cache.is_valid()

    def age(self) -> int:
        return self.cache.get_age()

    def last_sync(self) -> str | None:
        data = self.cache.get()
        return data.last_sync if data else None

    def list_projects(self, filters: dict[str, Any] | None = None) -> list[Project]:
        return filter_records(PROJECTS, self.snapshot().projects, filters)

    def list_tasks(self, filters: dict[str, Any] | None = None) -> list[Task]:
        return filter_records(TASKS, self.snapshot().tasks, filters)

    def list_outputs(self, filters: dict[str, Any] | None = None) -> list[Output]:
        return filter_records(OUTPUTS, self.snapshot().outputs, filters)

    def get_project(self, slug: str) -> Project | None:
        return next((p for p in self.snapshot().projects if p.slug == slug), None)

    def counts(self) -> dict[str, int]:
        return self.snapshot().counts

    def health(self) -> HealthStatus:
        if self.cache.ping():
            return HealthStatus(connected=True, message=f"{type(self.cache).__name__} reachable")
        return HealthStatus(connected=False, message=f"{type(self.cache).__name__} unreachable")

    def close(self) -> None:
        self.cache.close()
