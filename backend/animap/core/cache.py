"""In-memory read-through cache for resolution results."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger("animap.cache")

V = TypeVar("V")

CacheKey = tuple[str, str]


class ResolutionCache(Generic[V]):
    """Bounded TTL cache keyed by ``(primary_id, search_string)``.

    Owned by the caller and injected into the engine. Writes are
    last-writer-wins: concurrent resolutions of the same key compute equal
    results, so overwriting is always safe and no locking is needed.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        max_entries: int = 2048,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Seconds an entry stays valid (0 disables storing)
            max_entries: Entries kept before the least recently used is evicted
            clock: Time source, in seconds
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CacheKey, tuple[float, V]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> V | None:
        """Get a cached value.

        Args:
            key: ``(primary_id, search_string)``

        Returns:
            Cached value or None if not found/expired
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return value

    def set(self, key: CacheKey, value: V) -> None:
        """Store a value, evicting the least recently used entries when full."""
        if self.ttl_seconds <= 0:
            return

        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry", primary_id=evicted[0], search=evicted[1][:50])

    def expire(self, key: CacheKey) -> bool:
        """Drop one entry.

        Returns:
            True if an entry was removed
        """
        return self._entries.pop(key, None) is not None

    def clear_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cleared expired cache entries", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
