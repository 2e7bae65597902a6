"""
Caching utilities for the application.
"""

from collections import OrderedDict
from time import monotonic
from typing import Any


class Cache:
    """In-memory cache with TTL (Time To Live) and a cap on the number of entries."""

    def __init__(self, default_ttl: int = 3600, max_entries: int = 1024) -> None:
        """Initialize empty cache."""
        self._cache: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self.default_ttl = default_ttl
        self.max_entries = max(1, max_entries)

    def __len__(self) -> int:
        return len(self._cache)

    def get(self, key: str) -> Any | None:
        """
        Get value from cache by key.

        Args:
            key: Cache key

        Returns:
            Cached value if exists and not expired, None otherwise
        """
        item = self._cache.get(key)
        if item is None:
            return None
        expires, value = item
        if monotonic() >= expires:
            del self._cache[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Set value in cache with TTL.

        When the cache is full, expired entries are swept first and then the
        oldest entries are evicted.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (defaults to the cache's default TTL)
        """
        effective_ttl = self.default_ttl if ttl is None else ttl
        self._cache.pop(key, None)
        if len(self._cache) >= self.max_entries:
            self._sweep()
        while len(self._cache) >= self.max_entries:
            self._cache.popitem(last=False)
        self._cache[key] = (monotonic() + effective_ttl, value)

    def _sweep(self) -> None:
        now = monotonic()
        for key in [key for key, (expires, _) in self._cache.items() if now >= expires]:
            del self._cache[key]
