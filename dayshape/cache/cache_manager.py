"""
In-memory cache for resolved statistics, with TTL, LRU eviction and
owner-scoped invalidation.

Keys are namespaced per owner ("owner:alice:year:2026") so every write for
an owner can drop exactly that owner's entries with one glob pattern.
"""

import fnmatch
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


def owner_key(owner_id: str, *parts) -> str:
    """Build a cache key in the owner's namespace."""
    return ":".join(["owner", owner_id, *(str(p) for p in parts)])


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    hit_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": self.size,
            "hit_rate": self.hit_rate,
        }


class CacheManager:
    """Thread-safe in-memory cache with TTL, LRU eviction, and pattern invalidation."""

    def __init__(self, max_size: int = 1024, default_ttl: int = 3600):
        """
        Args:
            max_size: Maximum number of entries before LRU eviction.
            default_ttl: Default TTL in seconds.
        """
        # key -> (value, expiry_time, access_time)
        self._cache: dict[str, tuple[Any, float, float]] = {}
        self._lock = threading.RLock()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expiry_time, _access_time = entry
            if time.time() >= expiry_time:
                del self._cache[key]
                self._misses += 1
                return None

            self._cache[key] = (value, expiry_time, time.time())
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is None:
            ttl_seconds = self._default_ttl

        with self._lock:
            now = time.time()
            self._cache[key] = (value, now + ttl_seconds, now)
            if len(self._cache) > self._max_size:
                self._evict_lru()

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> int:
        """
        Invalidate all keys matching a glob pattern.

        "owner:alice:*" matches "owner:alice:year:2026".
        """
        with self._lock:
            doomed = [key for key in self._cache if fnmatch.fnmatch(key, pattern)]
            for key in doomed:
                del self._cache[key]
            return len(doomed)

    def invalidate_owner(self, owner_id: str) -> int:
        """Drop every entry cached for *owner_id*."""
        count = self.invalidate_pattern(owner_key(owner_id, "*"))
        if count:
            logger.debug("Invalidated %d cache entries for owner %s", count, owner_id)
        return count

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                hit_rate=hit_rate,
            )

    def _evict_lru(self) -> None:
        """Evict least-recently-used entry. Caller holds the lock."""
        if not self._cache:
            return
        lru_key = min(self._cache, key=lambda k: self._cache[k][2])
        del self._cache[lru_key]
        logger.debug("Evicted LRU key: %s", lru_key)
