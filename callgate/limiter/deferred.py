"""DEFERRED discipline: hand back a future the delayed action settles itself."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from ..errors import DeferredRejection, LimitExceededError

if TYPE_CHECKING:
    from .core import LimiterCore


class DeferredDispatcher:
    """Future-returning dispatch.

    The action is called as `action(resolve, reject, report_headers)` once the
    key's deadline passes and is responsible for settling the future.
    """

    def __init__(self, core: "LimiterCore") -> None:
        self._core = core

    def dispatch(
        self,
        key: str,
        action: Callable[..., Any],
        on_drained: Callable[[], Any],
    ) -> Any:
        core = self._core
        future = core._scheduler.create_future()
        delay = core.delay_for(key)
        if not core._within_limit(delay):
            core._cancel_for_limit(key)
            core._events.limit_exceeded(key, delay, core.limit)
            future.set_exception(
                LimitExceededError(key=key, delay_seconds=delay, limit_ms=core.limit)
            )
            return future

        def _resolve(value: Any = None) -> None:
            if not future.done():
                future.set_result(value)

        def _reject(error: Any = None) -> None:
            if future.done():
                return
            if not isinstance(error, BaseException):
                error = DeferredRejection(error)
            future.set_exception(error)

        report = core.header_reporter(key)

        def _run() -> None:
            try:
                action(_resolve, _reject, report)
            except Exception as exc:
                core._events.action_failed(key, type(exc).__name__)
                _reject(exc)
                return
            on_drained()

        core._schedule(key, delay, _run, track=True, future=future)
        return future
