"""Cancellable debounce timer for background writes."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()


class Debouncer:
    """Run ``action`` once ``delay`` seconds after the most recent ``schedule()``.

    A new ``schedule()`` before the delay elapses resets the timer instead of
    queueing a second run. Runs already started are never cancelled; ``flush()``
    waits for them before running any pending action immediately.

    ``action()`` is called synchronously when the timer fires, so whatever it
    captures before its first await reflects that moment.
    """

    def __init__(self, delay: float, action: Callable[[], Awaitable[None]]) -> None:
        self.delay = delay
        self._action = action
        self._handle: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return bool(self._inflight)

    def schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending run, if any. Returns True if one was dropped."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    async def flush(self) -> None:
        """Run the pending action now and wait until nothing is in flight."""
        was_pending = self.cancel()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        if was_pending:
            await self._action()

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.get_running_loop().create_task(self._action())
        self._inflight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("debounced_action_failed", error=str(exc), exc_info=exc)
