import pytest
from unittest.mock import AsyncMock, MagicMock

from memocache.core.command_handler import CommandHandler
from memocache.core.services.simulation_service import SimulationReport, SimulationService
from memocache.domain.interfaces.user_interface import UserInterface
from memocache.domain.models.cache import CacheConfig, CacheStats, EntryInfo
from memocache.infrastructure.cache.in_memory_store import InMemoryCacheStore


@pytest.fixture
def mock_store():
    store = MagicMock(spec=InMemoryCacheStore)
    store.config = CacheConfig(max_size=42, cleanup_interval_ms=0)
    return store


@pytest.fixture
def mock_simulation_service():
    service = MagicMock(spec=SimulationService)
    service.run = AsyncMock()
    return service


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def command_handler(mock_store, mock_simulation_service, mock_ui):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(store=mock_store, simulation_service=mock_simulation_service, ui=mock_ui)


@pytest.fixture
def report():
    stats = CacheStats(
        size=3, max_size=42, total_size=90, expired=0, hit_rate=2.0,
        oldest_entry=0, newest_entry=0, hits=6, misses=0, evictions=0, hit_ratio=1.0,
    )
    return SimulationReport(
        keys=3, reads=6, loader_calls=3, loader_failures=0,
        read_failures=0, invalidated=0, duration_ms=12.0, stats=stats,
    )


@pytest.mark.asyncio
async def test_handle_simulate(command_handler, mock_simulation_service, mock_ui, report):
    mock_simulation_service.run.return_value = report

    result = await command_handler.handle_simulate(key_count=3, reads=6, latency_ms=1.0, seed=4)

    assert result is report
    mock_simulation_service.run.assert_awaited_once_with(
        key_count=3, reads=6, latency_ms=1.0, concurrency=8,
        failure_rate=0.0, invalidate=None, seed=4,
    )
    mock_ui.display_info.assert_called_once()
    assert "6 reads over 3 keys" in mock_ui.display_info.call_args.args[0]
    mock_ui.display_stats.assert_called_once_with(report.stats)
    mock_ui.display_entries.assert_not_called()
    mock_ui.display_error.assert_not_called()


@pytest.mark.asyncio
async def test_handle_simulate_shows_entries(command_handler, mock_simulation_service, mock_store, mock_ui, report):
    mock_simulation_service.run.return_value = report
    entries = [EntryInfo(key="events:id:0", size=30, age_ms=1, ttl_remaining_ms=9, access_count=2, last_accessed=1, expired=False)]
    mock_store.get_info.return_value = entries

    await command_handler.handle_simulate(key_count=3, reads=6, latency_ms=0, show_entries=True)

    mock_ui.display_entries.assert_called_once_with(entries)


@pytest.mark.asyncio
async def test_handle_simulate_unknown_namespace(command_handler, mock_simulation_service, mock_ui):
    result = await command_handler.handle_simulate(key_count=3, reads=6, latency_ms=0, invalidate="orders")

    assert result is None
    mock_simulation_service.run.assert_not_called()
    mock_ui.display_error.assert_called_once()
    assert "Unknown namespace 'orders'" in mock_ui.display_error.call_args.args[0]


@pytest.mark.asyncio
async def test_handle_simulate_error(command_handler, mock_simulation_service, mock_ui):
    """Test that errors during the simulation are displayed."""
    mock_simulation_service.run.side_effect = ValueError("key_count must be >= 1")

    result = await command_handler.handle_simulate(key_count=0, reads=6, latency_ms=0)

    assert result is None
    mock_ui.display_error.assert_called_once_with("Simulation failed: key_count must be >= 1")
    mock_ui.display_stats.assert_not_called()


def test_handle_show_config(command_handler, mock_ui):
    command_handler.handle_show_config()
    mock_ui.display_config.assert_called_once()
    (shown,), _ = mock_ui.display_config.call_args
    assert shown["max_size"] == 42
    assert shown["cleanup_interval_ms"] == 0
