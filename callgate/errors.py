"""Domain exceptions for limiter dispatch and CLI diagnostics."""

from __future__ import annotations


class CallGateError(RuntimeError):
    """Base error raised for a dispatch that the limiter refuses."""

    def __init__(
        self,
        *,
        key: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a key-scoped limiter error."""

        super().__init__(detail)
        self.key = key
        self.detail = detail
        self.hint = hint


class LimitExceededError(CallGateError):
    """Raised when a key's pending delay exceeds the maximum tolerable delay."""

    def __init__(self, *, key: str, delay_seconds: float, limit_ms: int) -> None:
        """Record the computed delay and the configured limit."""

        super().__init__(
            key=key,
            detail=(
                f"Delay limit exceeded for `{key}`: "
                f"{delay_seconds * 1000:.0f}ms > {limit_ms}ms."
            ),
            hint="Back off and dispatch again later.",
        )
        self.delay_seconds = delay_seconds
        self.limit_ms = limit_ms


class QueueFullError(CallGateError):
    """Raised when a bounded per-key queue is at capacity."""

    def __init__(self, *, key: str, capacity: int) -> None:
        super().__init__(
            key=key,
            detail=f"Queue for `{key}` is full (capacity {capacity}).",
            hint="Wait for the queue to drain before dispatching more calls.",
        )
        self.capacity = capacity


class WorkerInvariantError(AssertionError):
    """Raised when a queue worker step runs on an empty queue.

    This signals a defect in the limiter itself and is never expected by callers.
    """


class DeferredRejection(Exception):
    """Carries a non-exception reason passed to a deferred action's `reject`."""

    def __init__(self, reason: object) -> None:
        super().__init__(reason)
        self.reason = reason
