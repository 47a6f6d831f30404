"""Top-level package for callgate.

This package provides a client-side call-rate governor that spaces calls per
call-key according to `Retry-After` hints reported by earlier calls. The main
entry point is `LimiterCore`.
"""

from .config import ConfigLoader, LimiterConfig
from .errors import (
    CallGateError,
    DeferredRejection,
    LimitExceededError,
    QueueFullError,
    WorkerInvariantError,
)
from .hints import SECONDS_IN_MONTH, HeaderMap, parse_retry_hint
from .limiter import (
    DISABLED,
    AsyncioScheduler,
    CancelScope,
    Discipline,
    LimiterCore,
    ThreadingScheduler,
)

__all__ = [
    "AsyncioScheduler",
    "CallGateError",
    "CancelScope",
    "ConfigLoader",
    "DISABLED",
    "DeferredRejection",
    "Discipline",
    "HeaderMap",
    "LimitExceededError",
    "LimiterConfig",
    "LimiterCore",
    "QueueFullError",
    "SECONDS_IN_MONTH",
    "ThreadingScheduler",
    "WorkerInvariantError",
    "parse_retry_hint",
    "__version__",
]

__version__ = "0.1.0"
