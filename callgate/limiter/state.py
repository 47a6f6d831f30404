"""Per-key limiter state: timing records, queues and pending timer handles.

Key types:
- `Discipline`: dispatch strategy selected at limiter construction.
- `CancelScope`: which pending timers a limit failure cancels.
- `CallState`: monotonically non-decreasing not-before timestamp of one key.
- `LimiterQueue`: FIFO of pending work plus the single-worker flag of one key.
- `CallRegistry`: explicit key registry owning every `CallState`/`LimiterQueue`.
- `PendingTimers`: per-key tracking of cancellable scheduler handles.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Protocol


DISABLED = -1


class Discipline(str, Enum):
    """Dispatch strategy of a limiter instance."""

    IMMEDIATE = "immediate"
    QUEUE = "queue"
    DEFERRED = "deferred"


class CancelScope(str, Enum):
    """Timers cancelled when a dispatch fails its delay limit."""

    KEY = "key"
    INSTANCE = "instance"


class TimerHandle(Protocol):
    """Cancellable handle returned by a scheduler."""

    def cancel(self) -> Any:
        ...


@dataclass(slots=True)
class CallState:
    """Timing record of one call-key."""

    not_before: float = 0.0

    def merge(self, candidate: float | None) -> bool:
        """Raise `not_before` to `candidate` if later; return whether it moved."""

        if candidate is None or candidate <= self.not_before:
            return False
        self.not_before = candidate
        return True


@dataclass(slots=True)
class QueuedCall:
    """One pending action together with its drain callback."""

    action: Callable[..., Any]
    on_drained: Callable[[], Any]


@dataclass(slots=True)
class LimiterQueue:
    """Ordered pending work of one call-key under the QUEUE discipline."""

    items: deque[QueuedCall] = field(default_factory=deque)
    worker_active: bool = False

    def __len__(self) -> int:
        return len(self.items)


@dataclass(slots=True)
class CallRegistry:
    """Explicit registry of call-keys; lookups never create entries."""

    with_queues: bool = False
    _states: dict[str, CallState] = field(default_factory=dict)
    _queues: dict[str, LimiterQueue] = field(default_factory=dict)

    def register(self, key: str) -> bool:
        """Create state for `key` if unseen; return whether it was created."""

        if key in self._states:
            return False
        self._states[key] = CallState()
        if self.with_queues:
            self._queues[key] = LimiterQueue()
        return True

    def state(self, key: str) -> CallState | None:
        return self._states.get(key)

    def queue(self, key: str) -> LimiterQueue | None:
        return self._queues.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._states))


@dataclass(slots=True)
class PendingTimers:
    """Scheduler handles registered per key and not yet fired."""

    _by_key: dict[str, dict[int, TimerHandle]] = field(default_factory=dict)
    _next_token: int = 0

    def add(self, key: str, handle: TimerHandle) -> int:
        """Track `handle` under `key` and return its token."""

        token = self._next_token
        self._next_token += 1
        self._by_key.setdefault(key, {})[token] = handle
        return token

    def discard(self, key: str, token: int) -> None:
        """Forget a handle whose callback has fired."""

        handles = self._by_key.get(key)
        if handles is None:
            return
        handles.pop(token, None)
        if not handles:
            del self._by_key[key]

    def pop_key(self, key: str) -> list[TimerHandle]:
        """Remove and return every handle tracked for `key`."""

        return list(self._by_key.pop(key, {}).values())

    def pop_all(self) -> list[TimerHandle]:
        """Remove and return every tracked handle."""

        handles = [handle for per_key in self._by_key.values() for handle in per_key.values()]
        self._by_key.clear()
        return handles

    def count(self, key: str | None = None) -> int:
        if key is not None:
            return len(self._by_key.get(key, {}))
        return sum(len(per_key) for per_key in self._by_key.values())
