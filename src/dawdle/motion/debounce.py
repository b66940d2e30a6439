"""Trailing-edge debounce on the asyncio event loop."""

from __future__ import annotations

import asyncio
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)

# Default quiet period (ms) before the analysis runs.
DEBOUNCE_WINDOW_MS = 1000


class Debouncer:
    """Run *callback* once calls to :meth:`trigger` have stopped for *wait* seconds.

    At most one call is pending at any time: every :meth:`trigger` cancels
    the pending one and schedules a fresh countdown.  The callback runs
    synchronously on the event loop that owns the debouncer.

    Example::

        debouncer = Debouncer(analyse, wait=1.0)
        for event in burst:
            debouncer.trigger()   # analyse() runs once, 1 s after the last event
    """

    def __init__(
        self,
        callback: Callable[[], None],
        wait: float = DEBOUNCE_WINDOW_MS / 1000,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._callback = callback
        self._wait = wait
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self.fire_count = 0

    @property
    def wait(self) -> float:
        return self._wait

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """(Re)start the countdown."""
        if self._handle is not None:
            self._handle.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self._wait, self._fire)

    def cancel(self) -> bool:
        """Drop the pending call.  Return ``True`` if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def flush(self) -> bool:
        """Run the pending call right away.  Return ``True`` if it ran."""
        if not self.cancel():
            return False
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        self.fire_count += 1
        logger.debug("debounce.fired", fire_count=self.fire_count)
        self._callback()
