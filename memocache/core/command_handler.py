"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the
work to the simulation service and the store, reporting through the UI.
"""

import logging
from typing import Optional

from memocache.core.services.cache_keys import NAMESPACES
from memocache.core.services.simulation_service import SimulationReport, SimulationService
from memocache.domain.interfaces.user_interface import UserInterface
from memocache.infrastructure.cache.in_memory_store import InMemoryCacheStore

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        store: InMemoryCacheStore,
        simulation_service: SimulationService,
        ui: UserInterface,
    ):
        self.store = store
        self.simulation_service = simulation_service
        self.ui = ui

    async def handle_simulate(
        self,
        key_count: int,
        reads: int,
        latency_ms: float,
        concurrency: int = 8,
        failure_rate: float = 0.0,
        invalidate: Optional[str] = None,
        seed: Optional[int] = None,
        show_entries: bool = False,
    ) -> Optional[SimulationReport]:
        """Handles the 'simulate' command. Returns the report, or None on failure."""
        logger.info(f"Handling 'simulate' command: keys={key_count}, reads={reads}, latency={latency_ms}ms")

        if invalidate and invalidate not in NAMESPACES:
            self.ui.display_error(f"Unknown namespace '{invalidate}'. Choose one of: {', '.join(NAMESPACES)}.")
            return None

        try:
            report = await self.simulation_service.run(
                key_count=key_count,
                reads=reads,
                latency_ms=latency_ms,
                concurrency=concurrency,
                failure_rate=failure_rate,
                invalidate=invalidate,
                seed=seed,
            )
        except Exception as e:
            logger.error(f"Simulation failed: {e}", exc_info=True)
            self.ui.display_error(f"Simulation failed: {e}")
            return None

        self.ui.display_info(
            f"{report.reads} reads over {report.keys} keys in {report.duration_ms:.0f} ms: "
            f"{report.loader_calls} loader calls, {report.loader_failures} loader failures, "
            f"{report.read_failures} failed reads, {report.invalidated} entries invalidated."
        )
        self.ui.display_stats(report.stats)
        if show_entries:
            self.ui.display_entries(self.store.get_info())
        return report

    def handle_show_config(self) -> None:
        """Handles the 'show-config' command."""
        logger.info("Handling 'show-config' command")
        self.ui.display_config(self.store.config.as_dict())
