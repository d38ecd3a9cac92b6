"""Recurring timer on the asyncio event loop.

Used by the store for its background expiry sweep. The callback runs on
the loop thread between other callbacks, so it never interleaves with a
synchronous store mutation.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SweepTimer:
    """Calls `callback` every `interval_ms` until stopped."""

    def __init__(self, interval_ms: float, callback: Callable[[], object], name: str = "sweep"):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.interval_ms = interval_ms
        self.callback = callback
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    @property
    def running(self) -> bool:
        """True while armed on a loop that is still open."""
        return self._handle is not None and self._loop is not None and not self._loop.is_closed()

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Arms the timer on `loop`, or on the running loop if omitted.

        Already armed on that loop: no-op. Armed on another (e.g. closed)
        loop: the old schedule is dropped and the timer moves to `loop`.
        Raises RuntimeError when no loop is given and none is running.
        """
        loop = loop or asyncio.get_running_loop()
        if self.running and self._loop is loop:
            return
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._loop = loop
        self._schedule()
        logger.debug(f"Timer '{self.name}' started, interval={self.interval_ms}ms")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug(f"Timer '{self.name}' stopped")
        self._loop = None

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.interval_ms / 1000.0, self._tick)

    def _tick(self) -> None:
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Timer '{self.name}' callback failed: {e}", exc_info=True)
        if self._handle is None or self._loop is None:
            return  # stopped from inside the callback
        if self._loop.is_closed():
            self._handle = None
            return
        self._schedule()
