"""Unit tests for shared configuration parsing helpers."""

import pytest

from callgate.limiter import CancelScope, Discipline
from callgate.parsing import (
    normalize_optional_string,
    parse_cancel_scope,
    parse_discipline,
    parse_limit,
)


def test_normalize_optional_string_handles_blank_values() -> None:
    """Normalization should return `None` for `None` and blank textual values."""

    assert normalize_optional_string(None) is None
    assert normalize_optional_string("") is None
    assert normalize_optional_string("   ") is None
    assert normalize_optional_string("  value  ") == "value"
    assert normalize_optional_string(42) == "42"


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("immediate", Discipline.IMMEDIATE),
        ("SINGLE", Discipline.IMMEDIATE),
        (" queue ", Discipline.QUEUE),
        ("Deferred", Discipline.DEFERRED),
        ("promise", Discipline.DEFERRED),
        (Discipline.QUEUE, Discipline.QUEUE),
    ],
)
def test_parse_discipline_accepts_names_and_aliases(token: object, expected: Discipline) -> None:
    assert parse_discipline(token) is expected


@pytest.mark.parametrize("token", ["", "burst", None, 3])
def test_parse_discipline_rejects_unknown_tokens(token: object) -> None:
    with pytest.raises(ValueError, match="`discipline` must be one of"):
        parse_discipline(token)


def test_parse_cancel_scope() -> None:
    assert parse_cancel_scope("Instance") is CancelScope.INSTANCE
    assert parse_cancel_scope(CancelScope.KEY) is CancelScope.KEY
    with pytest.raises(ValueError, match="`cancel_scope`"):
        parse_cancel_scope("everything")


@pytest.mark.parametrize(("value", "expected"), [(-1, -1), (0, 0), ("250", 250), (" -1 ", -1)])
def test_parse_limit_accepts_sentinel_and_non_negative(value: object, expected: int) -> None:
    assert parse_limit(value) == expected


@pytest.mark.parametrize("value", [-2, "1.5", "", None, False])
def test_parse_limit_rejects_invalid_values(value: object) -> None:
    with pytest.raises(ValueError, match="`limit`"):
        parse_limit(value)
