"""QUEUE discipline: serialized per-key draining with a single worker.

Each key owns a FIFO of pending actions. The first dispatch on an idle key
starts a worker that runs one action per step and waits for the key's
(possibly updated) not-before time before the next step. Later dispatches
only append; the active worker reaches them in order.

Actions must report their headers before returning. Headers reported from
work the action defers elsewhere arrive after the next step was timed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from ..errors import QueueFullError, WorkerInvariantError
from .state import DISABLED, LimiterQueue, QueuedCall

if TYPE_CHECKING:
    from .core import LimiterCore


class QueueDispatcher:
    """Serialized per-key queue with a single active worker per key."""

    def __init__(self, core: "LimiterCore") -> None:
        self._core = core

    @property
    def capacity(self) -> int:
        return self._core.limit

    def _queue(self, key: str) -> LimiterQueue:
        queue = self._core._registry.queue(key)
        if queue is None:
            raise WorkerInvariantError(f"No queue registered for `{key}`.")
        return queue

    def dispatch(
        self,
        key: str,
        action: Callable[..., Any],
        on_drained: Callable[[], Any],
    ) -> None:
        core = self._core
        with core._lock:
            queue = self._queue(key)
            if self.capacity != DISABLED and len(queue) >= self.capacity:
                core._events.queue_full(key, self.capacity)
                raise QueueFullError(key=key, capacity=self.capacity)
            queue.items.append(QueuedCall(action=action, on_drained=on_drained))

            if queue.worker_active:
                return
            queue.worker_active = True
            self._schedule_step(key)

    def _schedule_step(self, key: str) -> None:
        core = self._core
        core._schedule(key, core.delay_for(key), lambda: self._step(key), track=False)

    def _step(self, key: str) -> None:
        """Run the front item, then go idle or schedule the next step."""

        core = self._core
        with core._lock:
            queue = self._queue(key)
            if not queue.items:
                raise WorkerInvariantError(f"Queue worker for `{key}` ran on an empty queue.")
            item = queue.items.popleft()

        try:
            item.action(core.header_reporter(key))
        except Exception as exc:
            core._events.action_failed(key, type(exc).__name__)
            self._advance(key, None)
            raise
        self._advance(key, item)

    def _advance(self, key: str, finished: QueuedCall | None) -> None:
        """Reschedule while items remain; otherwise mark the key idle."""

        core = self._core
        with core._lock:
            queue = self._queue(key)
            if queue.items:
                self._schedule_step(key)
                return
            queue.worker_active = False
        core._events.drained(key)
        if finished is not None:
            finished.on_drained()
