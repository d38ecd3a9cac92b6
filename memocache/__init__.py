"""memocache: in-memory TTL cache with async memoization.

The public surface is re-exported here; the layers underneath follow
domain / core / infrastructure.
"""

from memocache.domain.models.cache import (
    DEFAULT_TTL_MS,
    LONG_TTL_MS,
    SHORT_TTL_MS,
    CacheConfig,
    CacheEntry,
    CacheStats,
    EntryInfo,
    WarmupEntry,
)
from memocache.domain.models.errors import CacheConfigError, CacheError, SerializationError
from memocache.infrastructure.cache.in_memory_store import InMemoryCacheStore

__version__ = "0.1.0"

__all__ = [
    "CacheConfig",
    "CacheConfigError",
    "CacheEntry",
    "CacheError",
    "CacheStats",
    "DEFAULT_TTL_MS",
    "EntryInfo",
    "InMemoryCacheStore",
    "LONG_TTL_MS",
    "SHORT_TTL_MS",
    "SerializationError",
    "WarmupEntry",
]
