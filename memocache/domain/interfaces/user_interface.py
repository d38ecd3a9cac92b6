"""Interface for presenting cache information to the user.

Defines the contract for displaying messages, stats and entry listings,
allowing different UI implementations (e.g., console, tests).
"""

import abc
from typing import Any, Dict, Sequence

from memocache.domain.models.cache import CacheStats, EntryInfo


class UserInterface(abc.ABC):
    """Abstract Base Class for user output."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_stats(self, stats: CacheStats, title: str = "Cache Stats") -> None:
        """Displays a stats snapshot.

        Args:
            stats: The snapshot returned by the store.
            title: Heading for the rendered table.
        """
        pass

    @abc.abstractmethod
    def display_entries(self, entries: Sequence[EntryInfo]) -> None:
        """Displays per-entry details."""
        pass

    @abc.abstractmethod
    def display_config(self, config: Dict[str, Any]) -> None:
        """Displays effective configuration values."""
        pass
