"""Simulation Service: drives a synthetic loader workload through the cache.

Stands in for the data-fetching callers of the cache. Each key gets an
async loader that sleeps for a configurable latency (and can be made to
fail), so warmup, memoized reads, background refresh and namespace
invalidation can be observed end to end.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from memocache.core.services.cache_keys import NAMESPACES, NamespaceInvalidator, make_key
from memocache.domain.interfaces.cache import CacheStore, ComputedCache
from memocache.domain.models.cache import CacheStats, WarmupEntry
from memocache.domain.models.common import CacheKey, Loader

logger = logging.getLogger(__name__)


class SimulatedLoaderError(RuntimeError):
    """Raised by a simulated loader to emulate a failing backend read."""


@dataclass
class SimulationReport:
    """Outcome of one simulation run."""
    keys: int
    reads: int
    loader_calls: int
    loader_failures: int
    read_failures: int
    invalidated: int
    duration_ms: float
    stats: CacheStats


class SimulationService:
    """Runs warmup, concurrent reads and invalidation against a cache."""

    def __init__(self, store: CacheStore, computed: ComputedCache):
        self.store = store
        self.computed = computed
        self.invalidator = NamespaceInvalidator(store)
        self._loader_calls: Dict[CacheKey, int] = {}
        self._loader_failures = 0

    def build_keys(self, key_count: int) -> List[CacheKey]:
        """Spreads `key_count` keys round-robin over the standard namespaces."""
        return [make_key(NAMESPACES[i % len(NAMESPACES)], "id", i) for i in range(key_count)]

    def make_loader(self, key: CacheKey, latency_ms: float, failure_rate: float, rng: random.Random) -> Loader:
        async def load() -> Dict[str, Any]:
            version = self._loader_calls.get(key, 0) + 1
            self._loader_calls[key] = version
            await asyncio.sleep(latency_ms / 1000.0)
            if failure_rate and rng.random() < failure_rate:
                self._loader_failures += 1
                raise SimulatedLoaderError(f"simulated backend failure for {key}")
            return {"key": key, "version": version, "loaded_at": time.time()}

        return load

    async def run(
        self,
        key_count: int = 20,
        reads: int = 200,
        latency_ms: float = 5.0,
        concurrency: int = 8,
        failure_rate: float = 0.0,
        invalidate: Optional[str] = None,
        ttl_ms: Optional[float] = None,
        seed: Optional[int] = None,
    ) -> SimulationReport:
        """Runs one simulation and returns its report.

        Args:
            key_count: Number of distinct keys.
            reads: Number of reads issued after warmup.
            latency_ms: Sleep inside each loader call.
            concurrency: Reads issued together per batch.
            failure_rate: Probability in [0, 1] that a loader call raises.
            invalidate: Namespace to invalidate after the reads, if any.
            ttl_ms: TTL for stored entries (store default if None).
            seed: Seed for the random key and failure choices.
        """
        if key_count < 1:
            raise ValueError("key_count must be >= 1")
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be within [0, 1]")

        rng = random.Random(seed)
        self._loader_calls = {}
        self._loader_failures = 0
        started = time.perf_counter()

        keys = self.build_keys(key_count)
        loaders = {key: self.make_loader(key, latency_ms, failure_rate, rng) for key in keys}

        logger.info(f"Simulation: warming {len(keys)} keys (latency={latency_ms}ms)")
        await self.computed.warmup([WarmupEntry(key=key, loader=loaders[key], ttl_ms=ttl_ms) for key in keys])

        read_failures = 0
        batch_size = max(1, concurrency)
        for start in range(0, reads, batch_size):
            batch = [rng.choice(keys) for _ in range(min(batch_size, reads - start))]
            results = await asyncio.gather(
                *(self.computed.memoize_with_refresh(key, loaders[key], ttl_ms) for key in batch),
                return_exceptions=True,
            )
            for key, outcome in zip(batch, results):
                if isinstance(outcome, Exception):
                    read_failures += 1
                    logger.debug(f"Simulated read failed for key={key}: {outcome}")

        invalidated = self.invalidator.invalidate(invalidate) if invalidate else 0

        report = SimulationReport(
            keys=len(keys),
            reads=reads,
            loader_calls=sum(self._loader_calls.values()),
            loader_failures=self._loader_failures,
            read_failures=read_failures,
            invalidated=invalidated,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            stats=self.store.get_stats(),
        )
        logger.info(
            f"Simulation finished: loader_calls={report.loader_calls}, "
            f"read_failures={report.read_failures}, invalidated={report.invalidated}"
        )
        return report
