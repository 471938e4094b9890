"""Repeating timer on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class IntervalTimer:
    """Call ``callback`` every ``interval`` seconds until stopped.

    The first call happens one interval after :meth:`start`. Each firing
    re-arms the timer with ``loop.call_later``. ``stop`` and ``close`` may be
    called any number of times.
    """

    def __init__(self, interval: float, callback: Callable[[], None], loop: asyncio.AbstractEventLoop | None = None):
        """Create a stopped timer."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._closed = False
        self.fired = 0

    @property
    def active(self) -> bool:
        """Whether a firing is scheduled."""
        return self._handle is not None

    @property
    def closed(self) -> bool:
        """Whether the timer was released."""
        return self._closed

    def start(self) -> None:
        """Schedule the first firing."""
        if self._closed:
            raise RuntimeError("Cannot start a closed timer")
        if self._handle is not None:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._schedule()

    def stop(self) -> None:
        """Cancel the pending firing, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        """Stop and release the timer."""
        self.stop()
        self._closed = True

    def _schedule(self) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._handle is None:
            return
        self.fired += 1
        try:
            self._callback()
        finally:
            if self._handle is not None and not self._closed:
                self._schedule()
