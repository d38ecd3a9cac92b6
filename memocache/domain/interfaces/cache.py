"""Interfaces for caching.

Defines the two call shapes the cache offers its collaborators: a
synchronous key/value store and an async compute-if-absent wrapper.
"""

import abc
from typing import Any, Iterable, Optional, Union, Mapping

from ..models.cache import CacheStats, WarmupEntry
from ..models.common import CacheKey, KeyPattern, Loader


class CacheStore(abc.ABC):
    """Direct key/value store with TTL expiry."""

    @abc.abstractmethod
    def set(self, key: CacheKey, value: Any, ttl_ms: Optional[float] = None) -> None:
        """Stores a value, replacing any existing entry for the key.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl_ms: Time-to-live in milliseconds (store default if None or 0).
        """
        pass

    @abc.abstractmethod
    def get(self, key: CacheKey) -> Optional[Any]:
        """Returns the live value for the key, or None if absent or expired."""
        pass

    @abc.abstractmethod
    def has(self, key: CacheKey) -> bool:
        """Returns whether a live entry exists, without counting it as an access."""
        pass

    @abc.abstractmethod
    def delete(self, key: CacheKey) -> bool:
        """Removes the entry regardless of liveness. Returns whether it existed."""
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Removes every entry."""
        pass

    @abc.abstractmethod
    def invalidate_pattern(self, pattern: KeyPattern) -> int:
        """Removes every key matching the regex source. Returns the number removed."""
        pass

    @abc.abstractmethod
    def get_stats(self) -> CacheStats:
        """Returns a snapshot of the store's contents."""
        pass


class ComputedCache(abc.ABC):
    """Compute-if-absent wrappers around async loaders."""

    @abc.abstractmethod
    async def memoize(self, key: CacheKey, loader: Loader, ttl_ms: Optional[float] = None) -> Any:
        """Returns the cached value, or awaits the loader and caches its result.

        A loader that raises leaves nothing cached.
        """
        pass

    @abc.abstractmethod
    async def memoize_with_refresh(
        self,
        key: CacheKey,
        loader: Loader,
        ttl_ms: Optional[float] = None,
        refresh_threshold: float = 0.8,
    ) -> Any:
        """Like memoize, but refreshes in the background once the entry is
        past `refresh_threshold` of its TTL. Never waits on that refresh.
        """
        pass

    @abc.abstractmethod
    async def warmup(self, entries: Iterable[Union[WarmupEntry, Mapping[str, Any]]]) -> None:
        """Runs all loaders concurrently and caches each success. Never raises
        for loader failures.
        """
        pass
