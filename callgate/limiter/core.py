"""Limiter engine owning per-key timing state and dispatch.

Responsibilities:
- Own every call-key's `CallState`, queue and pending timers.
- Fold reported headers into not-before timestamps (monotonic `max`).
- Delegate scheduling to the dispatcher of the configured discipline.

Key types:
- `LimiterCore`: public entry point, `dispatch(key, action, on_drained=None)`.
"""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time
from typing import TYPE_CHECKING, Any, Callable, Mapping

from ..hints import HeaderValue, parse_retry_hint
from ..telemetry.logger import LimiterEventLogger
from .deferred import DeferredDispatcher
from .immediate import ImmediateDispatcher
from .queue import QueueDispatcher
from .scheduling import AsyncioScheduler, Scheduler
from .state import (
    DISABLED,
    CallRegistry,
    CancelScope,
    Discipline,
    PendingTimers,
    TimerHandle,
)

if TYPE_CHECKING:
    from ..config import LimiterConfig


HeaderReporter = Callable[[Mapping[str, HeaderValue]], float]


def _noop() -> None:
    return None


@dataclass(slots=True)
class _TrackedTimer:
    """Pending timer plus the future it would settle, cancelled together."""

    handle: TimerHandle
    future: Any = None

    def cancel(self) -> None:
        self.handle.cancel()
        if self.future is not None and not self.future.done():
            self.future.cancel()


class LimiterCore:
    """Schedule actions per call-key so none runs before its not-before time.

    Args:
        discipline: Dispatch strategy, fixed for the lifetime of the instance.
        limit: Maximum tolerable delay in milliseconds (IMMEDIATE/DEFERRED) or
            queue capacity (QUEUE); `-1` disables the check.
        scheduler: Timer source; defaults to the running asyncio loop.
        clock: Wall-clock source in epoch seconds.
        cancel_scope: Timers cancelled when a dispatch exceeds its limit.
        event_logger: Limiter event sink.
    """

    def __init__(
        self,
        discipline: Discipline = Discipline.IMMEDIATE,
        limit: int = DISABLED,
        *,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.time,
        cancel_scope: CancelScope = CancelScope.KEY,
        event_logger: LimiterEventLogger | None = None,
    ) -> None:
        if limit < DISABLED:
            raise ValueError("`limit` must be `-1` or a non-negative integer.")
        self._discipline = Discipline(discipline)
        self._limit = limit
        self._cancel_scope = CancelScope(cancel_scope)
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._clock = clock
        self._events = event_logger or LimiterEventLogger()
        self._lock = threading.RLock()
        self._registry = CallRegistry(with_queues=self._discipline is Discipline.QUEUE)
        self._timers = PendingTimers()
        if self._discipline is Discipline.QUEUE:
            self._dispatcher: Any = QueueDispatcher(self)
        elif self._discipline is Discipline.DEFERRED:
            self._dispatcher = DeferredDispatcher(self)
        else:
            self._dispatcher = ImmediateDispatcher(self)

    @classmethod
    def from_config(cls, config: "LimiterConfig", **kwargs: Any) -> "LimiterCore":
        """Build a limiter from validated configuration."""

        config.validate()
        return cls(
            config.discipline,
            config.limit,
            cancel_scope=config.cancel_scope,
            **kwargs,
        )

    @property
    def discipline(self) -> Discipline:
        return self._discipline

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def cancel_scope(self) -> CancelScope:
        return self._cancel_scope

    def dispatch(
        self,
        key: str,
        action: Callable[..., Any],
        on_drained: Callable[[], Any] | None = None,
    ) -> Any:
        """Run `action` for `key` no sooner than the key's not-before time.

        Returns:
            `None` for IMMEDIATE and QUEUE, a future for DEFERRED.

        Raises:
            LimitExceededError: IMMEDIATE delay exceeds the configured maximum.
            QueueFullError: QUEUE capacity is reached.
        """

        with self._lock:
            if self._registry.register(key):
                self._events.registered(key, self._discipline.value)
        return self._dispatcher.dispatch(key, action, on_drained or _noop)

    def report_headers(self, key: str, headers: Mapping[str, HeaderValue] | None) -> float:
        """Fold the retry hint in `headers` into `key`'s not-before timestamp."""

        candidate = parse_retry_hint(headers, now=self._clock())
        with self._lock:
            self._registry.register(key)
            state = self._registry.state(key)
            assert state is not None
            if state.merge(candidate):
                self._events.hint(key, state.not_before)
            return state.not_before

    def header_reporter(self, key: str) -> HeaderReporter:
        """Return the header-reporting callback bound to `key`."""

        def _report(headers: Mapping[str, HeaderValue]) -> float:
            return self.report_headers(key, headers)

        return _report

    def not_before(self, key: str) -> float:
        """Return `key`'s not-before timestamp (0.0 for unseen keys)."""

        with self._lock:
            state = self._registry.state(key)
            return state.not_before if state is not None else 0.0

    def delay_for(self, key: str) -> float:
        """Return seconds until `key` may run; negative when already allowed."""

        return self.not_before(key) - self._clock()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._registry)

    def pending_count(self, key: str) -> int:
        """Return the number of queued, not yet started actions for `key`."""

        with self._lock:
            queue = self._registry.queue(key)
            return len(queue) if queue is not None else 0

    def is_draining(self, key: str) -> bool:
        with self._lock:
            queue = self._registry.queue(key)
            return queue is not None and queue.worker_active

    def pending_timers(self, key: str | None = None) -> int:
        with self._lock:
            return self._timers.count(key)

    def cancel_pending(self, key: str | None = None) -> int:
        """Cancel tracked timers of `key`, or of every key when `key` is None."""

        with self._lock:
            handles = self._timers.pop_all() if key is None else self._timers.pop_key(key)
        for handle in handles:
            handle.cancel()
        return len(handles)

    def _within_limit(self, delay_seconds: float) -> bool:
        return self._limit == DISABLED or delay_seconds * 1000 <= self._limit

    def _cancel_for_limit(self, key: str) -> None:
        """Cancel timers after a limit failure, honoring the cancellation scope."""

        if self._cancel_scope is CancelScope.INSTANCE:
            count = self.cancel_pending()
        else:
            count = self.cancel_pending(key)
        if count:
            self._events.timers_cancelled(key, count, self._cancel_scope.value)

    def _schedule(
        self,
        key: str,
        delay_seconds: float,
        callback: Callable[[], None],
        *,
        track: bool,
        future: Any = None,
    ) -> None:
        """Schedule `callback` after `max(delay, 0)`; optionally track it for cancellation."""

        delay = max(delay_seconds, 0.0)
        with self._lock:
            token: list[int] = []

            def _fire() -> None:
                # Blocks until the token below is registered.
                with self._lock:
                    if token:
                        self._timers.discard(key, token[0])
                callback()

            handle = self._scheduler.call_later(delay, _fire)
            if track:
                token.append(self._timers.add(key, _TrackedTimer(handle, future)))
            self._events.scheduled(key, delay)
