import random

import pytest

from memocache.core.services.simulation_service import SimulatedLoaderError, SimulationService


@pytest.fixture
def simulation(make_store):
    store = make_store(max_size=100, default_ttl_ms=60_000)
    return SimulationService(store=store, computed=store)


def test_build_keys_round_robin(simulation):
    assert simulation.build_keys(6) == [
        "events:id:0",
        "clients:id:1",
        "testimonials:id:2",
        "settings:id:3",
        "images:id:4",
        "events:id:5",
    ]


@pytest.mark.asyncio
async def test_loader_versions_increase(simulation):
    loader = simulation.make_loader("events:id:0", latency_ms=0, failure_rate=0.0, rng=random.Random(0))
    assert (await loader())["version"] == 1
    assert (await loader())["version"] == 2


@pytest.mark.asyncio
async def test_loader_fails_at_full_failure_rate(simulation):
    loader = simulation.make_loader("events:id:0", latency_ms=0, failure_rate=1.0, rng=random.Random(0))
    with pytest.raises(SimulatedLoaderError):
        await loader()


@pytest.mark.asyncio
async def test_run_warms_every_key_once(simulation):
    report = await simulation.run(key_count=5, reads=40, latency_ms=0, concurrency=4, seed=1)

    assert report.keys == 5
    assert report.reads == 40
    # all reads hit warm, fresh entries on a frozen clock
    assert report.loader_calls == 5
    assert report.read_failures == 0
    assert report.stats.size == 5
    assert report.stats.hits == 40
    assert report.invalidated == 0


@pytest.mark.asyncio
async def test_run_with_namespace_invalidation(simulation):
    report = await simulation.run(key_count=10, reads=0, latency_ms=0, invalidate="events", seed=1)
    assert report.invalidated == 2
    assert report.stats.size == 8
    assert not any(key.startswith("events:") for key in simulation.store.keys())


@pytest.mark.asyncio
async def test_run_with_failing_backend_never_caches(simulation):
    report = await simulation.run(key_count=3, reads=6, latency_ms=0, concurrency=2, failure_rate=1.0, seed=1)

    assert report.read_failures == 6
    assert report.loader_failures == report.loader_calls == 9
    assert report.stats.size == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"key_count": 0}, {"failure_rate": 1.5}])
async def test_run_rejects_bad_arguments(simulation, kwargs):
    with pytest.raises(ValueError):
        await simulation.run(latency_ms=0, **kwargs)
