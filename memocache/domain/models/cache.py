"""Entities and configuration for the in-memory cache.

Timestamps and durations are in milliseconds throughout. An entry is
live while `now < expires_at` and dead from `expires_at` onwards.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from memocache.domain.models.common import CacheKey, Loader
from memocache.domain.models.errors import CacheConfigError

# TTL presets (milliseconds)
SHORT_TTL_MS = 60 * 1000          # 1 minute
DEFAULT_TTL_MS = 5 * 60 * 1000    # 5 minutes
LONG_TTL_MS = 30 * 60 * 1000      # 30 minutes

DEFAULT_MAX_SIZE = 100
DEFAULT_CLEANUP_INTERVAL_MS = 60 * 1000


@dataclass
class CacheEntry:
    """One cached value plus the bookkeeping used for expiry, eviction and stats."""
    key: CacheKey
    value: Any  # JSON text when `compressed` is set
    created_at: float
    expires_at: float
    last_accessed: float
    size: int
    compressed: bool
    access_count: int = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def touch(self, now: float) -> None:
        """Records a successful read."""
        self.access_count += 1
        self.last_accessed = now

    def elapsed_fraction(self, now: float) -> float:
        """Fraction of the TTL that has already elapsed (1.0 once dead)."""
        total = self.expires_at - self.created_at
        if total <= 0:
            return 1.0
        return (now - self.created_at) / total


@dataclass(frozen=True)
class CacheConfig:
    """Construction-time options for a store. Immutable once built."""
    default_ttl_ms: float = DEFAULT_TTL_MS
    max_size: int = DEFAULT_MAX_SIZE
    enable_compression: bool = True
    cleanup_interval_ms: float = DEFAULT_CLEANUP_INTERVAL_MS
    enable_metrics: bool = True
    coalesce_loads: bool = False

    def __post_init__(self):
        if self.default_ttl_ms <= 0:
            raise CacheConfigError("default_ttl_ms", self.default_ttl_ms, "must be positive")
        if isinstance(self.max_size, bool) or not isinstance(self.max_size, int) or self.max_size < 1:
            raise CacheConfigError("max_size", self.max_size, "must be an integer >= 1")
        if self.cleanup_interval_ms < 0:
            raise CacheConfigError("cleanup_interval_ms", self.cleanup_interval_ms, "must be >= 0 (0 disables the sweep)")

    @property
    def cleanup_enabled(self) -> bool:
        return self.cleanup_interval_ms > 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the store computed at call time.

    `hit_rate` is the mean access count per entry, not a hit/miss ratio.
    The true ratio over the store's lifetime is `hit_ratio`.
    """
    size: int
    max_size: int
    total_size: int
    expired: int
    hit_rate: float
    oldest_entry: Optional[float]
    newest_entry: Optional[float]
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    hit_ratio: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EntryInfo:
    """Read-only view of one entry for debugging and display."""
    key: CacheKey
    size: int
    age_ms: float
    ttl_remaining_ms: float
    access_count: int
    last_accessed: float
    expired: bool


@dataclass
class WarmupEntry:
    """A key to pre-load along with the loader that produces its value."""
    key: CacheKey
    loader: Loader
    ttl_ms: Optional[float] = field(default=None)
