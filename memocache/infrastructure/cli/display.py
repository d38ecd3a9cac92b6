import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from memocache.domain.interfaces.user_interface import UserInterface
from memocache.domain.models.cache import CacheStats, EntryInfo

logger = logging.getLogger(__name__)


def format_timestamp(ms: Optional[float]) -> str:
    """Renders an epoch-milliseconds timestamp, or '-' when absent."""
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000.0).strftime("%H:%M:%S.%f")[:-3]


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_stats(self, stats: CacheStats, title: str = "Cache Stats") -> None:
        """Renders a stats snapshot as a two-column table.

        `hit_rate` is labelled as mean accesses per entry, which is what it
        measures; the true ratio is shown separately.
        """
        table = Table(title=title, box=ROUNDED, border_style="cyan", show_header=False, padding=(0, 1))
        table.add_column("Metric", style="bold cyan")
        table.add_column("Value", justify="right")

        table.add_row("Entries", f"{stats.size} / {stats.max_size}")
        table.add_row("Total size", format_bytes(stats.total_size))
        table.add_row("Expired (unswept)", str(stats.expired))
        table.add_row("Mean accesses per entry", f"{stats.hit_rate:.2f}")
        table.add_row("Hits / misses", f"{stats.hits} / {stats.misses}")
        table.add_row("Hit ratio", f"{stats.hit_ratio:.1%}")
        table.add_row("Evictions", str(stats.evictions))
        table.add_row("Oldest entry", format_timestamp(stats.oldest_entry))
        table.add_row("Newest entry", format_timestamp(stats.newest_entry))

        self.console.print(table)

    def display_entries(self, entries: Sequence[EntryInfo]) -> None:
        if not entries:
            self.display_info("Cache is empty.")
            return

        table = Table(title="Cache Entries", box=SIMPLE, header_style="bold cyan")
        table.add_column("Key", overflow="fold")
        table.add_column("Size", justify="right")
        table.add_column("Age (ms)", justify="right")
        table.add_column("TTL left (ms)", justify="right")
        table.add_column("Accesses", justify="right")
        table.add_column("Status")

        for entry in sorted(entries, key=lambda e: e.key):
            status = "[red]expired[/red]" if entry.expired else "[green]live[/green]"
            table.add_row(
                entry.key,
                format_bytes(entry.size),
                f"{entry.age_ms:.0f}",
                f"{entry.ttl_remaining_ms:.0f}",
                str(entry.access_count),
                status,
            )
        self.console.print(table)

    def display_config(self, config: Dict[str, Any]) -> None:
        table = Table(title="Cache Configuration", box=ROUNDED, border_style="cyan", show_header=False)
        table.add_column("Option", style="bold cyan")
        table.add_column("Value")
        for name, value in config.items():
            table.add_row(name, str(value))
        self.console.print(table)
