"""
Tests for the snapshot caches.

Tests TTL freshness, age reporting and Redis best-effort behavior using an
in-memory stand-in for the Redis client.
"""

import json

import pytest
import redis

from plandash.core.dashboard.cache import MemoryCache, RedisCache
from plandash.core.dashboard.cache.kv import DEFAULT_CACHE_KEY
from plandash.core.dashboard.models import SyncData


class FakeRedis:
    """Dict-backed object with the subset of the redis client we use."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.closed = False

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, ex=None):
        self.values[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    def delete(self, key):
        return 1 if self.values.pop(key, None) is not None else 0

    def ping(self):
        return True

    def close(self):
        self.closed = True


class BrokenRedis(FakeRedis):
    """Client whose every call fails like an unreachable server."""

    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("connection refused")

    def delete(self, key):
        raise redis.ConnectionError("connection refused")

    def ping(self):
        raise redis.ConnectionError("connection refused")


@pytest.fixture(params=["memory", "redis"])
def cache(request, clock):
    """Each cache implementation with a 300 second TTL."""
    if request.param == "memory":
        return MemoryCache(ttl_seconds=300, clock=clock)
    return RedisCache(client=FakeRedis(), ttl_seconds=300, clock=clock)


class TestSnapshotCache:
    """Behavior shared by all cache implementations."""

    def test_empty_cache(self, cache):
        """Test that an empty cache misses."""
        assert cache.get() is None
        assert cache.is_valid() is False
        assert cache.get_age() == -1

    def test_set_then_get(self, cache, sample_data):
        """Test that a stored snapshot is returned with its records."""
        stored = cache.set(sample_data)
        data = cache.get()

        assert data is not None
        assert data.timestamp == stored.timestamp
        assert data.counts == sample_data.counts
        assert data.projects == sample_data.projects
        assert data.last_sync == sample_data.last_sync

    def test_fresh_until_ttl(self, cache, clock):
        """Test that data is fresh strictly before the TTL elapses."""
        cache.set(SyncData())

        clock.advance(299)
        assert cache.is_valid() is True
        assert cache.get_age() == 299

        clock.advance(1)
        assert cache.is_valid() is False
        assert cache.get() is None
        assert cache.get_age() == -1

    def test_age_is_rounded(self, cache, clock):
        """Test that the age is reported in whole seconds."""
        cache.set(SyncData())
        clock.advance(10.6)
        assert cache.get_age() == 11

    def test_set_replaces_previous_snapshot(self, cache, clock, make_project):
        """Test that the last write wins and restarts the TTL."""
        cache.set(SyncData(projects=[make_project("project-old")]))
        clock.advance(200)
        cache.set(SyncData(projects=[make_project("project-new")]))
        clock.advance(200)

        data = cache.get()
        assert data is not None
        assert [p.slug for p in data.projects] == ["project-new"]
        assert cache.get_age() == 200

    def test_clear(self, cache):
        """Test that clear discards the snapshot."""
        cache.set(SyncData())
        cache.clear()
        assert cache.get() is None


class TestRedisCache:
    """Redis-specific behavior."""

    def test_stores_json_with_expiry(self, clock):
        """Test the key, the JSON shape and the server-side expiry."""
        client = FakeRedis()
        cache = RedisCache(client=client, ttl_seconds=120, clock=clock)

        cache.set(SyncData(last_sync="2025-01-15T12:00:00Z"))

        raw = json.loads(client.values[DEFAULT_CACHE_KEY])
        assert raw["lastSync"] == "2025-01-15T12:00:00Z"
        assert raw["timestamp"] == clock.now
        assert client.expiry[DEFAULT_CACHE_KEY] == 120

    def test_custom_key(self, clock):
        """Test that the snapshot key is configurable."""
        client = FakeRedis()
        RedisCache(client=client, key="other:key", clock=clock).set(SyncData())
        assert list(client.values) == ["other:key"]

    def test_shared_between_instances(self, clock, sample_data):
        """Test that two caches on the same server see the same snapshot."""
        client = FakeRedis()
        RedisCache(client=client, clock=clock).set(sample_data)

        data = RedisCache(client=client, clock=clock).get()

        assert data is not None
        assert data.counts == sample_data.counts

    def test_unreadable_entry_is_a_miss(self, clock, caplog):
        """Test that a corrupt value is treated as a miss."""
        client = FakeRedis()
        client.values[DEFAULT_CACHE_KEY] = "{not json"

        assert RedisCache(client=client, clock=clock).get() is None
        assert "Discarding unreadable" in caplog.text

    def test_read_failure_is_a_miss(self, clock, caplog):
        """Test that Redis errors on read are logged cache misses."""
        cache = RedisCache(client=BrokenRedis(), clock=clock)

        assert cache.get() is None
        assert cache.ping() is False
        assert "Error reading from Redis" in caplog.text

    def test_write_failure_is_logged(self, clock, caplog):
        """Test that Redis errors on write do not raise."""
        cache = RedisCache(client=BrokenRedis(), clock=clock)

        stamped = cache.set(SyncData())

        assert stamped.timestamp == clock.now
        assert "Error writing to Redis" in caplog.text

    def test_requires_url_or_client(self):
        """Test that a cache needs somewhere to connect."""
        with pytest.raises(ValueError):
            RedisCache()

    def test_close_closes_client(self, clock):
        """Test that close releases the client."""
        client = FakeRedis()
        RedisCache(client=client, clock=clock).close()
        assert client.closed is True
