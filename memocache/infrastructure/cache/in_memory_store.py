"""In-memory implementation of the cache ports.

A single dict owns every entry. Expiry is checked lazily on read and
by a periodic sweep on the event loop. When the store is full, inserting
a new key evicts the entry with the oldest `last_accessed`, found with a
linear scan (O(n) per eviction). That is fine for a few hundred entries;
past low thousands an ordered structure with O(1) move-to-front should
replace the scan.

All mutations are synchronous and run to completion inside one turn of
the event loop. The only suspension points are the loader awaits in
`memoize`, `memoize_with_refresh` and `warmup`, so concurrent callers
missing the same key both run the loader unless `coalesce_loads` is set.
"""

import asyncio
import functools
import logging
import re
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from memocache.domain.interfaces.cache import CacheStore, ComputedCache
from memocache.domain.models.cache import CacheConfig, CacheEntry, CacheStats, EntryInfo, WarmupEntry
from memocache.domain.models.common import CacheKey, Clock, KeyPattern, Loader
from memocache.infrastructure.cache.serialization import JsonCodec
from memocache.infrastructure.cache.sweep_timer import SweepTimer

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_THRESHOLD = 0.8


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class InMemoryCacheStore(CacheStore, ComputedCache):
    """TTL cache with size-bounded eviction and async memoization."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Optional[Clock] = None,
        codec: Optional[JsonCodec] = None,
    ):
        """Initializes the store and, if a loop is running, its cleanup sweep.

        Args:
            config: Store options. Defaults to CacheConfig().
            clock: Zero-arg callable returning now in milliseconds.
            codec: Codec used when compression is enabled.
        """
        self._config = config or CacheConfig()
        self._clock = clock or wall_clock_ms
        self._codec = codec or JsonCodec()
        self._entries: Dict[str, CacheEntry] = {}

        self._hits = 0
        self._misses = 0
        self._evictions = 0

        self._inflight: Dict[str, "asyncio.Task[Any]"] = {}
        self._refreshing: Dict[str, "asyncio.Task[None]"] = {}

        self._sweep_timer: Optional[SweepTimer] = None
        if self._config.cleanup_enabled:
            self._sweep_timer = SweepTimer(self._config.cleanup_interval_ms, self.cleanup, name="cache-cleanup")
        self._ensure_cleanup_started()

        logger.info(
            f"Initialized in-memory cache: max_size={self._config.max_size}, "
            f"default_ttl={self._config.default_ttl_ms}ms, compression={self._config.enable_compression}, "
            f"cleanup_interval={self._config.cleanup_interval_ms}ms"
        )

    @property
    def config(self) -> CacheConfig:
        return self._config

    # --- Direct store interface ---

    def set(self, key: CacheKey, value: Any, ttl_ms: Optional[float] = None) -> None:
        """Stores `value` under `key`.

        A `ttl_ms` of None or 0 means the configured default TTL.

        Raises:
            ValueError: If `ttl_ms` is negative.
            SerializationError: If compression is on and the value is not JSON-encodable.
        """
        if ttl_ms is not None and ttl_ms < 0:
            raise ValueError(f"ttl_ms must be >= 0, got {ttl_ms}")
        self._ensure_cleanup_started()
        now = self._now()
        ttl = ttl_ms or self._config.default_ttl_ms

        # Encode first so a failing value leaves the store untouched.
        if self._config.enable_compression:
            stored = self._codec.encode(value, key=key)
            size = self._codec.size_of_encoded(stored)
        else:
            stored = value
            size = self._codec.size_of(value)

        if key not in self._entries and len(self._entries) >= self._config.max_size:
            self._evict_least_recently_accessed()

        self._entries[key] = CacheEntry(
            key=key,
            value=stored,
            created_at=now,
            expires_at=now + ttl,
            last_accessed=now,
            size=size,
            compressed=self._config.enable_compression,
        )
        logger.debug(f"Cache SET key={key} ttl={ttl}ms size={size}")

    def get(self, key: CacheKey) -> Optional[Any]:
        found, value = self._read(key)
        return value if found else None

    def has(self, key: CacheKey) -> bool:
        return self._live_entry(key, self._now()) is not None

    def delete(self, key: CacheKey) -> bool:
        existed = self._entries.pop(key, None) is not None
        if existed:
            logger.debug(f"Cache DELETE key={key}")
        return existed

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared in-memory cache ({count} entries).")

    def invalidate_pattern(self, pattern: KeyPattern) -> int:
        regex = re.compile(pattern)
        matched = [key for key in self._entries if regex.search(key)]
        for key in matched:
            del self._entries[key]
        logger.debug(f"Invalidated {len(matched)} entries matching pattern {pattern!r}")
        return len(matched)

    def get_stats(self) -> CacheStats:
        now = self._now()
        entries = list(self._entries.values())
        lookups = self._hits + self._misses

        return CacheStats(
            size=len(entries),
            max_size=self._config.max_size,
            total_size=sum(e.size for e in entries),
            expired=sum(1 for e in entries if e.is_expired(now)),
            hit_rate=(sum(e.access_count for e in entries) / len(entries)) if entries else 0.0,
            oldest_entry=min(e.created_at for e in entries) if entries else None,
            newest_entry=max(e.created_at for e in entries) if entries else None,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            hit_ratio=(self._hits / lookups) if lookups else 0.0,
        )

    def get_info(self) -> List[EntryInfo]:
        """Per-entry details, including entries that expired but were not swept yet."""
        now = self._now()
        return [
            EntryInfo(
                key=entry.key,
                size=entry.size,
                age_ms=now - entry.created_at,
                ttl_remaining_ms=max(0.0, entry.expires_at - now),
                access_count=entry.access_count,
                last_accessed=entry.last_accessed,
                expired=entry.is_expired(now),
            )
            for entry in self._entries.values()
        ]

    def keys(self) -> List[str]:
        return list(self._entries)

    # --- Computed / memoized interface ---

    async def memoize(self, key: CacheKey, loader: Loader, ttl_ms: Optional[float] = None) -> Any:
        self._ensure_cleanup_started()
        found, value = self._read(key)
        if found:
            return value

        if self._config.coalesce_loads:
            return await self._coalesced_load(key, loader, ttl_ms)

        result = await loader()
        self.set(key, result, ttl_ms)
        return result

    async def memoize_with_refresh(
        self,
        key: CacheKey,
        loader: Loader,
        ttl_ms: Optional[float] = None,
        refresh_threshold: float = DEFAULT_REFRESH_THRESHOLD,
    ) -> Any:
        if not 0.0 <= refresh_threshold <= 1.0:
            raise ValueError(f"refresh_threshold must be within [0, 1], got {refresh_threshold}")
        self._ensure_cleanup_started()

        now = self._now()
        entry = self._live_entry(key, now)
        if entry is None:
            return await self.memoize(key, loader, ttl_ms)

        if entry.elapsed_fraction(now) > refresh_threshold:
            self._schedule_refresh(key, loader, ttl_ms)

        entry.touch(now)
        self._record_hit()
        return self._decode(entry)

    async def warmup(self, entries: Iterable[Union[WarmupEntry, Mapping[str, Any]]]) -> None:
        self._ensure_cleanup_started()
        items = [self._as_warmup_entry(e) for e in entries]
        if not items:
            return

        results = await asyncio.gather(*(self._warm_one(item) for item in items))
        loaded = sum(1 for ok in results if ok)
        logger.info(f"Cache warmup finished: {loaded}/{len(items)} entries loaded")

    # --- Lifecycle ---

    @property
    def cleanup_running(self) -> bool:
        return self._sweep_timer is not None and self._sweep_timer.running

    def start_cleanup(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Starts the expiry sweep on `loop` (or the running loop).

        No-op when the sweep is disabled or already running.
        """
        if self._sweep_timer is None:
            logger.debug("Cleanup sweep disabled (cleanup_interval_ms=0).")
            return
        self._sweep_timer.start(loop)

    def stop_cleanup(self) -> None:
        if self._sweep_timer is not None:
            self._sweep_timer.stop()

    def cleanup(self) -> int:
        """Deletes every expired entry. Returns the number removed."""
        now = self._now()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cleanup sweep removed {len(expired)} expired entries")
        return len(expired)

    def destroy(self) -> None:
        """Stops the sweep, cancels background refreshes and clears all entries."""
        self.stop_cleanup()
        for task in list(self._refreshing.values()):
            task.cancel()
        self._refreshing.clear()
        self.clear()
        logger.info("In-memory cache destroyed.")

    # --- Internals ---

    def _now(self) -> float:
        return float(self._clock())

    def _ensure_cleanup_started(self) -> None:
        if self._sweep_timer is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # started by the first call made from inside a loop
        if self._sweep_timer.running and self._sweep_timer.loop is loop:
            return
        # first call on this loop, or the previous loop has closed
        self._sweep_timer.start(loop)

    def _live_entry(self, key: str, now: float) -> Optional[CacheEntry]:
        """Returns the entry if live, removing it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            del self._entries[key]
            logger.debug(f"Cache EXPIRED key={key}")
            return None
        return entry

    def _read(self, key: str) -> Tuple[bool, Any]:
        now = self._now()
        entry = self._live_entry(key, now)
        if entry is None:
            self._record_miss()
            logger.debug(f"Cache MISS key={key}")
            return False, None
        entry.touch(now)
        self._record_hit()
        logger.debug(f"Cache HIT key={key}")
        return True, self._decode(entry)

    def _decode(self, entry: CacheEntry) -> Any:
        return self._codec.decode(entry.value, key=entry.key) if entry.compressed else entry.value

    def _record_hit(self) -> None:
        if self._config.enable_metrics:
            self._hits += 1

    def _record_miss(self) -> None:
        if self._config.enable_metrics:
            self._misses += 1

    def _evict_least_recently_accessed(self) -> None:
        victim: Optional[str] = None
        oldest: Optional[float] = None
        for key, entry in self._entries.items():
            if oldest is None or entry.last_accessed < oldest:
                oldest = entry.last_accessed
                victim = key
        if victim is None:
            return
        del self._entries[victim]
        if self._config.enable_metrics:
            self._evictions += 1
        logger.debug(f"Cache EVICTED key={victim} (last_accessed={oldest})")

    async def _coalesced_load(self, key: str, loader: Loader, ttl_ms: Optional[float]) -> Any:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load_and_store(key, loader, ttl_ms))
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._forget_inflight, key))
        else:
            logger.debug(f"Joining in-flight load for key={key}")
        # shield: one cancelled waiter must not cancel the shared load
        return await asyncio.shield(task)

    async def _load_and_store(self, key: str, loader: Loader, ttl_ms: Optional[float]) -> Any:
        result = await loader()
        self.set(key, result, ttl_ms)
        return result

    def _forget_inflight(self, key: str, task: "asyncio.Task[Any]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # mark retrieved; every waiter already received it through shield()
            task.exception()

    def _schedule_refresh(self, key: str, loader: Loader, ttl_ms: Optional[float]) -> None:
        if key in self._refreshing:
            logger.debug(f"Background refresh already running for key={key}")
            return
        task = asyncio.get_running_loop().create_task(self._refresh(key, loader, ttl_ms))
        self._refreshing[key] = task
        task.add_done_callback(functools.partial(self._forget_refresh, key))
        logger.debug(f"Scheduled background refresh for key={key}")

    async def _refresh(self, key: str, loader: Loader, ttl_ms: Optional[float]) -> None:
        try:
            result = await loader()
            self.set(key, result, ttl_ms)
        except Exception as e:
            logger.warning(f"Background refresh failed for key {key}: {e}")
            return
        logger.debug(f"Background refresh stored key={key}")

    def _forget_refresh(self, key: str, task: "asyncio.Task[None]") -> None:
        if self._refreshing.get(key) is task:
            del self._refreshing[key]

    async def _warm_one(self, item: WarmupEntry) -> bool:
        try:
            result = await item.loader()
            self.set(item.key, result, item.ttl_ms)
        except Exception as e:
            logger.warning(f"Cache warmup failed for key {item.key}: {e}")
            return False
        return True

    @staticmethod
    def _as_warmup_entry(item: Union[WarmupEntry, Mapping[str, Any]]) -> WarmupEntry:
        if isinstance(item, WarmupEntry):
            return item
        if isinstance(item, Mapping):
            return WarmupEntry(key=item["key"], loader=item["loader"], ttl_ms=item.get("ttl_ms"))
        raise TypeError(f"Unsupported warmup entry type: {type(item).__name__}")
