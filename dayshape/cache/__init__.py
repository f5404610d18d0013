"""
In-memory cache layer for dayshape.

Provides:
- CacheManager: TTL-based cache with LRU eviction and pattern invalidation
- owner_key: namespaced key builder
- @invalidates_owner / @cached_per_owner: service method decorators
"""

from .cache_manager import CacheManager, CacheStats, owner_key
from .decorators import cached_per_owner, invalidates_owner

__all__ = [
    "CacheManager",
    "CacheStats",
    "owner_key",
    "cached_per_owner",
    "invalidates_owner",
]
