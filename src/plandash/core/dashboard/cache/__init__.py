"""
Staleness caches for parsed planning snapshots.

- MemoryCache: process-local, lost on restart
- RedisCache: shared across processes and restarts, best-effort

Both expose get/set/clear/is_valid/get_age with the same TTL rule.
"""

from plandash.core.dashboard.cache.base import DEFAULT_TTL_SECONDS, SnapshotCache
from plandash.core.dashboard.cache.kv import RedisCache
from plandash.core.dashboard.cache.memory import MemoryCache

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "MemoryCache",
    "RedisCache",
    "SnapshotCache",
]
