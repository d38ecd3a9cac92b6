"""Main entry point for the memocache application.

Sets up the Typer CLI application, performs dependency injection
(Composition Root), defines CLI commands, and delegates execution to the
CommandHandler. The composition root owns the single store instance and
destroys it when the command finishes.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Annotated, Any, Dict, Iterator, Optional

import typer

from memocache.core.command_handler import CommandHandler
from memocache.core.services.simulation_service import SimulationService
from memocache.infrastructure.cache.in_memory_store import InMemoryCacheStore
from memocache.infrastructure.cli.display import ConsoleDisplay
from memocache.infrastructure.config.settings import get_log_settings, load_cache_config, load_configuration
from memocache.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)


# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    # 1. Load Configuration First
    load_configuration()
    log_settings = get_log_settings()
    setup_logging(log_level=log_settings['level'], log_format=log_settings['format'], log_file=log_settings['file'])
    logger.info("Configuration and logging initialized.")

    # 2. Infrastructure
    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    dependencies['store'] = InMemoryCacheStore(config=load_cache_config())

    # 3. Core services
    dependencies['simulation_service'] = SimulationService(
        store=dependencies['store'],
        computed=dependencies['store'],
    )

    # 4. Command handler
    dependencies['command_handler'] = CommandHandler(
        store=dependencies['store'],
        simulation_service=dependencies['simulation_service'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


@contextmanager
def application() -> Iterator[Dict[str, Any]]:
    """Builds the dependencies and tears the store down on exit."""
    try:
        dependencies = create_dependencies()
    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        ConsoleDisplay().display_error(f"Application Initialization Failed: {e}")
        raise typer.Exit(code=1)
    try:
        yield dependencies
    finally:
        dependencies['store'].destroy()


# --- Typer App Definition ---
app = typer.Typer(
    name="memocache",
    help="memocache: in-memory TTL cache with memoization and stale-while-revalidate refresh.",
    add_completion=False,
)


@app.command()
def simulate(
    keys: Annotated[int, typer.Option("--keys", "-k", min=1, help="Number of distinct cache keys.")] = 20,
    reads: Annotated[int, typer.Option("--reads", "-r", min=0, help="Reads issued after warmup.")] = 200,
    latency_ms: Annotated[float, typer.Option("--latency-ms", min=0.0, help="Simulated loader latency.")] = 5.0,
    concurrency: Annotated[int, typer.Option("--concurrency", "-c", min=1, help="Reads issued together per batch.")] = 8,
    failure_rate: Annotated[float, typer.Option("--failure-rate", min=0.0, max=1.0, help="Probability a loader call fails.")] = 0.0,
    invalidate: Annotated[Optional[str], typer.Option("--invalidate", help="Namespace to invalidate afterwards (e.g. 'events').")] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed for reproducible runs.")] = None,
    show_entries: Annotated[bool, typer.Option("--show-entries", help="List every entry after the run.")] = False,
):
    """Run a synthetic loader workload through the cache and show its stats."""
    with application() as deps:
        handler: CommandHandler = deps['command_handler']
        report = asyncio.run(handler.handle_simulate(
            key_count=keys,
            reads=reads,
            latency_ms=latency_ms,
            concurrency=concurrency,
            failure_rate=failure_rate,
            invalidate=invalidate,
            seed=seed,
            show_entries=show_entries,
        ))
    if report is None:
        raise typer.Exit(code=1)


@app.command(name="show-config")
def show_config():
    """Show the effective cache configuration."""
    with application() as deps:
        handler: CommandHandler = deps['command_handler']
        handler.handle_show_config()


def cli_entry_point():
    """Function called by the console script entry point."""
    app()


if __name__ == "__main__":
    cli_entry_point()
