import os

import pytest
from typer.testing import CliRunner

from memocache.domain.models.cache import CacheConfig
from memocache.infrastructure.cache.in_memory_store import InMemoryCacheStore
from memocache.infrastructure.config import settings


class FakeClock:
    """Simulated millisecond clock; tests move time forward explicitly."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms

    def set(self, ms: float) -> None:
        self.now = ms


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_store(clock):
    """Factory for stores on the simulated clock. Sweep disabled unless asked for."""
    created = []

    def _make(**overrides):
        overrides.setdefault("cleanup_interval_ms", 0)
        store = InMemoryCacheStore(config=CacheConfig(**overrides), clock=clock)
        created.append(store)
        return store

    yield _make
    for store in created:
        store.destroy()


@pytest.fixture
def store(make_store):
    return make_store(default_ttl_ms=1000, max_size=10)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps real MEMOCACHE_* variables and loaded config out of tests."""
    for name in list(os.environ):
        if name.startswith(settings.ENV_PREFIX):
            monkeypatch.delenv(name)
    settings.clear_test_config()
    settings.reset_configuration()
    yield
    settings.clear_test_config()
    settings.reset_configuration()
