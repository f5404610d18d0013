"""
Cache decorators for planner service methods.

Write methods take ``owner_id`` as their first argument; decorating them with
``@invalidates_owner`` drops that owner's cached statistics after the write,
whether it succeeded or raised midway.
"""

import functools
import logging
from collections.abc import Callable
from typing import Any

from .cache_manager import owner_key

logger = logging.getLogger(__name__)


def invalidates_owner(func: Callable) -> Callable:
    """
    Invalidate ``self.cache`` entries for the owner after the call.

    Example:
        @invalidates_owner
        def set_date_override(self, owner_id, d, day_type_key, period="full"):
            ...
    """

    @functools.wraps(func)
    def wrapper(self, owner_id: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(self, owner_id, *args, **kwargs)
        finally:
            self.cache.invalidate_owner(owner_id)

    return wrapper


def cached_per_owner(namespace: str, ttl: int | None = None) -> Callable:
    """
    Memoize a read method keyed by (owner_id, *args).

    Example:
        @cached_per_owner("year")
        def year_statistics(self, owner_id, year):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, owner_id: str, *args: Any) -> Any:
            key = owner_key(owner_id, namespace, *args)
            hit = self.cache.get(key)
            if hit is not None:
                logger.debug("Cache hit for %s", key)
                return hit

            result = func(self, owner_id, *args)
            self.cache.set(key, result, ttl_seconds=ttl)
            return result

        return wrapper

    return decorator
