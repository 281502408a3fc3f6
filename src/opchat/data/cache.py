"""TTL caching for collaborator lookups (gas price, asset price).

A lookup is either fresh (inside its TTL) or stale (expired, but the last
value seen for that key). Fee estimates may use stale values; they must
never block a confirmation.
"""

import logging
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)
T = TypeVar("T")


class CacheStatus(str, Enum):
    """Outcome of a cache lookup."""

    FRESH = "fresh"
    STALE = "stale"
    MISS = "miss"


class Cache:
    """TTL cache that also remembers the last value stored per key."""

    def __init__(self, maxsize: int = 100, ttl: int = 300):
        self._fresh: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._last: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        """Fresh value for ``key``, or None once it expired."""
        return self._fresh.get(key)

    def get_stale(self, key: str) -> Optional[Any]:
        """Last value stored for ``key``, ignoring the TTL."""
        return self._last.get(key)

    def lookup(self, key: str) -> tuple[CacheStatus, Optional[Any]]:
        if key in self._fresh:
            return CacheStatus.FRESH, self._fresh[key]
        if key in self._last:
            return CacheStatus.STALE, self._last[key]
        return CacheStatus.MISS, None

    def set(self, key: str, value: Any) -> None:
        self._fresh[key] = value
        self._last[key] = value

    def expire(self, key: Optional[str] = None) -> None:
        """Force a refetch; stale values stay available."""
        if key is None:
            self._fresh.clear()
        else:
            self._fresh.pop(key, None)

    def clear(self) -> None:
        """Forget everything, stale values included."""
        self._fresh.clear()
        self._last.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._fresh


def async_cached(cache: Cache, key_func: Optional[Callable[..., str]] = None):
    """Cache the result of an async function while it is fresh.

    None results are never stored, so a failed lookup is retried on the
    next call.

    Args:
        cache: Cache instance to use
        key_func: Builds the cache key from the call arguments
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            key = key_func(*args, **kwargs) if key_func else f"{func.__name__}:{args}:{kwargs}"

            status, value = cache.lookup(key)
            if status is CacheStatus.FRESH:
                logger.debug(f"Cache hit for {key}")
                return value

            result = await func(*args, **kwargs)
            if result is not None:
                cache.set(key, result)
            return result

        return wrapper

    return decorator
