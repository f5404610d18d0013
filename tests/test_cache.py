"""
Tests for the in-memory cache layer.

Tests cover:
- Basic get/set operations
- TTL expiration
- Owner-scoped invalidation
- Statistics tracking
- LRU eviction
- Service decorators
"""

import threading
import time

import pytest

from dayshape.cache import CacheManager, cached_per_owner, invalidates_owner, owner_key


class TestCacheBasicOperations:
    """Test basic cache operations."""

    def test_set_and_get(self):
        cache = CacheManager()
        cache.set("key1", "value1")
        assert cache.get("key1") == "value1"

    def test_get_nonexistent_key(self):
        assert CacheManager().get("nonexistent") is None

    def test_delete_key(self):
        cache = CacheManager()
        cache.set("key1", "value1")
        cache.delete("key1")
        assert cache.get("key1") is None

    def test_clear(self):
        cache = CacheManager()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert cache.stats().size == 0


class TestCacheTTL:
    """Expiry."""

    def test_ttl_expiration(self):
        cache = CacheManager()
        cache.set("key1", "value1", ttl_seconds=0)
        time.sleep(0.01)
        assert cache.get("key1") is None

    def test_default_ttl(self):
        cache = CacheManager(default_ttl=3600)
        cache.set("key1", "value1")
        assert cache.get("key1") == "value1"


class TestOwnerInvalidation:
    """Owner namespaces."""

    def test_owner_key(self):
        assert owner_key("alice", "year", 2026) == "owner:alice:year:2026"

    def test_invalidate_owner_only_touches_owner(self):
        cache = CacheManager()
        cache.set(owner_key("alice", "year", 2026), "a")
        cache.set(owner_key("alice", "year", 2027), "b")
        cache.set(owner_key("bob", "year", 2026), "c")

        assert cache.invalidate_owner("alice") == 2
        assert cache.get(owner_key("bob", "year", 2026)) == "c"

    def test_owner_prefix_is_not_a_wildcard(self):
        cache = CacheManager()
        cache.set(owner_key("al", "year", 2026), "a")
        cache.set(owner_key("alice", "year", 2026), "b")
        cache.invalidate_owner("al")
        assert cache.get(owner_key("alice", "year", 2026)) == "b"


class TestStats:
    """Hit/miss accounting."""

    def test_stats_hits_and_misses(self):
        cache = CacheManager()
        cache.set("k", "v")
        cache.get("k")
        cache.get("missing")
        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)
        assert stats.hit_rate == 0.5
        assert stats.to_dict()["hits"] == 1


class TestLRUEviction:
    """Size bound."""

    def test_lru_eviction(self):
        cache = CacheManager(max_size=2)
        cache.set("a", 1)
        time.sleep(0.01)
        cache.set("b", 2)
        time.sleep(0.01)
        cache.get("a")
        time.sleep(0.01)
        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3


class TestThreadSafety:
    """Concurrent access."""

    def test_concurrent_set_and_get(self):
        cache = CacheManager()

        def worker(n):
            for i in range(100):
                cache.set(f"{n}:{i}", i)
                cache.get(f"{n}:{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.stats().size == 500


class _Counter:
    def __init__(self):
        self.cache = CacheManager()
        self.calls = 0

    @cached_per_owner("total")
    def total(self, owner_id, year):
        self.calls += 1
        return {"owner": owner_id, "year": year}

    @invalidates_owner
    def write(self, owner_id, fail=False):
        if fail:
            raise ValueError("rejected")


class TestDecorators:
    """cached_per_owner / invalidates_owner."""

    def test_memoizes_per_args(self):
        counter = _Counter()
        counter.total("alice", 2026)
        counter.total("alice", 2026)
        counter.total("alice", 2027)
        assert counter.calls == 2

    def test_write_invalidates(self):
        counter = _Counter()
        counter.total("alice", 2026)
        counter.write("alice")
        counter.total("alice", 2026)
        assert counter.calls == 2

    def test_failed_write_invalidates(self):
        counter = _Counter()
        counter.total("alice", 2026)
        with pytest.raises(ValueError):
            counter.write("alice", fail=True)
        counter.total("alice", 2026)
        assert counter.calls == 2
