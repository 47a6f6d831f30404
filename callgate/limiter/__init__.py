"""Limiter engine and its dispatch disciplines."""

from .core import LimiterCore
from .scheduling import AsyncioScheduler, Scheduler, ThreadingScheduler
from .state import DISABLED, CallState, CancelScope, Discipline

__all__ = [
    "AsyncioScheduler",
    "CallState",
    "CancelScope",
    "DISABLED",
    "Discipline",
    "LimiterCore",
    "Scheduler",
    "ThreadingScheduler",
]
