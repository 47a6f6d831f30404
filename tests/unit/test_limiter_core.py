"""Unit tests for limiter state ownership and header feedback."""

from __future__ import annotations

import pytest

from callgate.limiter import DISABLED, CancelScope, Discipline, LimiterCore
from callgate.limiter.state import CallRegistry, CallState, PendingTimers
from tests.fakes import FakeClock, ManualScheduler


def test_not_before_never_moves_backward(clock: FakeClock, scheduler: ManualScheduler) -> None:
    """Smaller or past hints must leave the not-before timestamp untouched."""

    limiter = LimiterCore(scheduler=scheduler, clock=clock)
    observed = [
        limiter.report_headers("api", {"Retry-After": "10"}),
        limiter.report_headers("api", {"Retry-After": "2"}),
        limiter.report_headers("api", {"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}),
        limiter.report_headers("api", {}),
    ]

    assert observed == [clock.now + 10] * 4
    assert limiter.not_before("api") == clock.now + 10


def test_relative_hint_sets_deadline_from_now(clock: FakeClock, scheduler: ManualScheduler) -> None:
    """A relative hint of 3 seconds yields a not-before of at least now + 3."""

    limiter = LimiterCore(scheduler=scheduler, clock=clock)
    limiter.report_headers("api", {"retry-after": 3})

    assert limiter.not_before("api") >= clock.now + 3
    assert limiter.delay_for("api") == pytest.approx(3.0)


def test_past_absolute_hint_on_fresh_key_does_not_delay(
    clock: FakeClock, scheduler: ManualScheduler
) -> None:
    """A past date is merged but never restricts a key beyond now."""

    limiter = LimiterCore(scheduler=scheduler, clock=clock)
    limiter.report_headers("api", {"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})

    assert limiter.delay_for("api") < 0


def test_queries_do_not_register_keys(clock: FakeClock, scheduler: ManualScheduler) -> None:
    """Read-only queries must not create state for unseen keys."""

    limiter = LimiterCore(scheduler=scheduler, clock=clock)

    assert limiter.not_before("unknown") == 0.0
    assert limiter.pending_count("unknown") == 0
    assert limiter.is_draining("unknown") is False
    assert limiter.keys() == []


def test_dispatch_registers_key_once(clock: FakeClock, scheduler: ManualScheduler) -> None:
    """The first dispatch creates the key; later ones reuse it."""

    limiter = LimiterCore(scheduler=scheduler, clock=clock)
    limiter.dispatch("a", lambda report: None)
    limiter.dispatch("a", lambda report: None)
    limiter.dispatch("b", lambda report: None)

    assert limiter.keys() == ["a", "b"]


def test_construction_is_fixed_and_validated(clock: FakeClock, scheduler: ManualScheduler) -> None:
    """Discipline and limit are exposed read-only; limits below -1 are rejected."""

    limiter = LimiterCore(Discipline.QUEUE, 4, scheduler=scheduler, clock=clock)

    assert limiter.discipline is Discipline.QUEUE
    assert limiter.limit == 4
    assert limiter.cancel_scope is CancelScope.KEY
    with pytest.raises(AttributeError):
        limiter.limit = 5  # type: ignore[misc]
    with pytest.raises(ValueError, match="non-negative"):
        LimiterCore(Discipline.QUEUE, -2, scheduler=scheduler, clock=clock)


def test_defaults_match_immediate_without_limit(clock: FakeClock, scheduler: ManualScheduler) -> None:
    limiter = LimiterCore(scheduler=scheduler, clock=clock)

    assert limiter.discipline is Discipline.IMMEDIATE
    assert limiter.limit == DISABLED


def test_call_state_merge_reports_movement() -> None:
    state = CallState()

    assert state.merge(None) is False
    assert state.merge(5.0) is True
    assert state.merge(4.0) is False
    assert state.not_before == 5.0


def test_registry_creates_queues_only_when_requested() -> None:
    plain = CallRegistry()
    queued = CallRegistry(with_queues=True)

    assert plain.register("k") is True
    assert plain.register("k") is False
    assert queued.register("k") is True
    assert plain.queue("k") is None
    assert queued.queue("k") is not None
    assert "k" in plain and "other" not in plain


def test_pending_timers_pop_by_key_and_all() -> None:
    """Timers are tracked per key and forgotten once popped or discarded."""

    timers = PendingTimers()
    first = timers.add("a", object())  # type: ignore[arg-type]
    timers.add("a", object())  # type: ignore[arg-type]
    timers.add("b", object())  # type: ignore[arg-type]
    timers.discard("a", first)

    assert timers.count("a") == 1
    assert timers.count() == 2
    assert len(timers.pop_key("a")) == 1
    assert len(timers.pop_all()) == 1
    assert timers.count() == 0
