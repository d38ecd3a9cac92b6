"""Error types raised by the cache.

Misses are never errors: `get` returns None and `has` returns False.
Only misconfiguration and codec failures surface as exceptions; invalid
invalidation patterns surface as `re.error` from the regex engine.
"""

from typing import Optional


class CacheError(Exception):
    """Base class for cache errors."""


class CacheConfigError(CacheError, ValueError):
    """Raised when a CacheConfig holds an invalid value."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid cache config '{field}'={value!r}: {reason}")


class SerializationError(CacheError, ValueError):
    """Raised when a value cannot be encoded for storage or decoded on read."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message if key is None else f"{message} (key={key})")
