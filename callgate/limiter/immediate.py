"""IMMEDIATE discipline: run each action once after the key's deadline.

Every dispatch gets its own timer; dispatches landing while a key is
restricted fire together once its not-before time passes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from ..errors import LimitExceededError

if TYPE_CHECKING:
    from .core import LimiterCore


class ImmediateDispatcher:
    """Bounded single-shot dispatch."""

    def __init__(self, core: "LimiterCore") -> None:
        self._core = core

    def dispatch(
        self,
        key: str,
        action: Callable[..., Any],
        on_drained: Callable[[], Any],
    ) -> None:
        core = self._core
        delay = core.delay_for(key)
        if not core._within_limit(delay):
            core._cancel_for_limit(key)
            core._events.limit_exceeded(key, delay, core.limit)
            raise LimitExceededError(key=key, delay_seconds=delay, limit_ms=core.limit)

        report = core.header_reporter(key)

        def _run() -> None:
            try:
                action(report)
            except Exception as exc:
                core._events.action_failed(key, type(exc).__name__)
                raise
            on_drained()

        core._schedule(key, delay, _run, track=True)
