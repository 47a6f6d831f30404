"""Timer schedulers that run limiter callbacks after a delay.

Responsibilities:
- Provide a single `call_later` hook so dispatchers stay independent of the
  event loop or threading model that drives them.
- Create the future type handed out by the DEFERRED discipline.

Key types:
- `Scheduler`: protocol consumed by `LimiterCore`.
- `AsyncioScheduler`: timers on an asyncio event loop (single-threaded).
- `ThreadingScheduler`: daemon `threading.Timer` timers.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Protocol

from .state import TimerHandle


class Scheduler(Protocol):
    """Delayed-callback source used by the limiter dispatchers."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` once after `delay` seconds; return a cancellable handle."""
        ...

    def create_future(self) -> Any:
        """Return a new unsettled future supporting `set_result`/`set_exception`."""
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    When no loop is given, the running loop is looked up at each call, so the
    scheduler can be built before the loop starts.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._resolve_loop().call_later(max(delay, 0.0), callback)

    def create_future(self) -> asyncio.Future[Any]:
        return self._resolve_loop().create_future()


class ThreadingScheduler:
    """Scheduler running each callback on its own daemon timer thread."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay, 0.0), callback)
        timer.daemon = True
        timer.start()
        return timer

    def create_future(self) -> concurrent.futures.Future[Any]:
        return concurrent.futures.Future()
