"""Time-bounded cache for marketplace listings.

The cache is an optimization only: callers must behave correctly when it is
empty or disabled. Entries expire after a fixed TTL and are overwritten on
the next lookup miss.
"""

import logging
import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from skillhub.config.constants import DEFAULT_CACHE_TTL

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheEntry(Generic[T]):
    """Cached value with the clock reading taken when it was stored."""

    __slots__ = ("value", "timestamp")

    def __init__(self, value: T, timestamp: float):
        self.value = value
        self.timestamp = timestamp

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.timestamp < ttl


class MarketplaceCache:
    """TTL cache shared by the source resolver and the search API client.

    Args:
        ttl: Seconds an entry stays valid (default 5 minutes)
        clock: Monotonic clock callable, injectable for tests
        enabled: When False every lookup is a miss and nothing is stored

    Example:
        >>> cache = MarketplaceCache(ttl=300)
        >>> cache.set("acme/skills", ["pdf"])
        >>> cache.get("acme/skills")
        ['pdf']
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
    ):
        self.ttl = ttl
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        if not self.enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock(), self.ttl):
            logger.debug(f"Cache entry expired: {key}")
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(value, self._clock())

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


def search_key(search: str, page: int, limit: int, sort_by: str) -> str:
    """Cache key for a search API query."""
    return f"skillsmp:{search}:{page}:{limit}:{sort_by}"
