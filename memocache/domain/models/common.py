"""Defines common Value Objects used across the cache contexts.

These objects represent simple values like keys, patterns and durations,
ensuring consistency between key producers and the store.
"""

from typing import Any, Awaitable, Callable, NewType

# === Caching Context ===
CacheKey = NewType("CacheKey", str)            # Unique key for a cache entry, e.g. 'events:id:42'
CacheNamespace = NewType("CacheNamespace", str)  # Leading key segment, e.g. 'events'
KeyPattern = NewType("KeyPattern", str)        # Regex source matched against raw keys

# === Time ===
Milliseconds = NewType("Milliseconds", float)  # Durations and timestamps are milliseconds

# === Loaders ===
Loader = Callable[[], Awaitable[Any]]           # Async function producing a value to cache
Clock = Callable[[], Milliseconds]             # Returns "now"

KEY_DELIMITER = ":"
