"""Tick sources that drive the session engine.

The engine never reads the wall clock to advance its countdown; it is moved
one second at a time by whichever ticker it was given. ``ManualTicker`` lets
tests advance virtual time deterministically, ``AsyncioTicker`` drives a live
session from the event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from streakpro_cli.utils.logger import get_logger

logger = get_logger("ticker")

TickCallback = Callable[[], object]


class Ticker:
    """Base class for tick sources."""

    def __init__(self) -> None:
        self._callback: TickCallback | None = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        """Begin delivering ticks to *callback*."""
        if self.running:
            raise RuntimeError("Ticker already started")
        self._callback = callback

    def stop(self) -> None:
        """Stop delivering ticks. Safe to call more than once."""
        self._callback = None


class ManualTicker(Ticker):
    """Ticker advanced explicitly, one call per virtual second."""

    def __init__(self) -> None:
        super().__init__()
        self.delivered = 0

    def advance(self, ticks: int = 1) -> int:
        """Deliver up to *ticks* ticks; stops early if the ticker is stopped.

        Returns:
            Number of ticks actually delivered.
        """
        delivered = 0
        for _ in range(ticks):
            if self._callback is None:
                break
            self._callback()
            delivered += 1
        self.delivered += delivered
        return delivered


class AsyncioTicker(Ticker):
    """Ticker backed by an asyncio task firing every *interval* seconds."""

    def __init__(self, interval: float = 1.0) -> None:
        super().__init__()
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._task: asyncio.Task | None = None

    def start(self, callback: TickCallback) -> None:
        super().start(callback)
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval
        while self._callback is not None:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            next_at += self.interval
            callback = self._callback
            if callback is None:
                break
            try:
                callback()
            except Exception:
                logger.exception("tick callback failed")

    def stop(self) -> None:
        super().stop()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
