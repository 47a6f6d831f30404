"""Unit tests for retry hint parsing and case-insensitive header lookup."""

from __future__ import annotations

import math

import pytest
from requests.structures import CaseInsensitiveDict

from callgate.hints import MAX_EPOCH_MILLISECONDS, SECONDS_IN_MONTH, HeaderMap, parse_retry_hint

NOW = 1_700_000_000.0


@pytest.mark.parametrize("name", ["Retry-After", "retry-after", "RETRY-AFTER", "rEtRy-AfTeR"])
def test_retry_after_lookup_is_case_insensitive(name: str) -> None:
    """Any casing of the header name should be recognized."""

    assert parse_retry_hint({name: "3"}, now=NOW) == NOW + 3


@pytest.mark.parametrize(("value", "expected"), [(3, NOW + 3), ("3", NOW + 3), (" 2.5 ", NOW + 2.5), (0, NOW)])
def test_small_numeric_values_are_relative_seconds(value: object, expected: float) -> None:
    """Numbers and numeric strings below one month are delays from now."""

    assert parse_retry_hint({"Retry-After": value}, now=NOW) == expected


def test_month_threshold_switches_to_absolute_epoch_milliseconds() -> None:
    """Values at or above the month threshold are read as epoch milliseconds."""

    just_below = parse_retry_hint({"Retry-After": SECONDS_IN_MONTH - 1}, now=NOW)
    at_threshold = parse_retry_hint({"Retry-After": SECONDS_IN_MONTH}, now=NOW)

    assert just_below == NOW + SECONDS_IN_MONTH - 1
    assert at_threshold == SECONDS_IN_MONTH / 1000.0


def test_large_number_is_epoch_milliseconds() -> None:
    """A millisecond epoch timestamp resolves to the same instant in seconds."""

    assert parse_retry_hint({"Retry-After": 1_700_000_060_000}, now=NOW) == 1_700_000_060.0


@pytest.mark.parametrize("value", ["1900000000000", "1e20", "-5"])
def test_numeric_strings_outside_relative_window_are_not_epoch_numbers(value: str) -> None:
    """Numeric text outside the window is tried as a date and yields no hint."""

    assert parse_retry_hint({"Retry-After": value}, now=NOW) is None


@pytest.mark.parametrize("value", [1e20, -1e17, 8_640_000_000_000_001])
def test_numbers_beyond_representable_dates_produce_no_hint(value: float) -> None:
    """Epoch millisecond numbers past the widest representable instant are ignored."""

    assert parse_retry_hint({"Retry-After": value}, now=NOW) is None


def test_widest_epoch_millisecond_number_is_accepted() -> None:
    assert parse_retry_hint({"Retry-After": MAX_EPOCH_MILLISECONDS}, now=NOW) == 8.64e12


def test_http_date_is_absolute_timestamp() -> None:
    """RFC 7231 HTTP-dates are parsed as absolute UTC instants."""

    candidate = parse_retry_hint({"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}, now=NOW)

    assert candidate == 1445412480.0


def test_iso_date_without_timezone_is_utc() -> None:
    """ISO-8601 values without an offset are interpreted as UTC."""

    candidate = parse_retry_hint({"Retry-After": "2015-10-21T07:28:00"}, now=NOW)

    assert candidate == 1445412480.0


@pytest.mark.parametrize("value", ["soon", "", "   ", math.nan, math.inf, "inf", True])
def test_uninterpretable_values_produce_no_hint(value: object) -> None:
    """Garbage, blank, non-finite and boolean values yield `None`."""

    assert parse_retry_hint({"Retry-After": value}, now=NOW) is None


def test_missing_header_produces_no_hint() -> None:
    """Unrelated headers and empty input yield `None`."""

    assert parse_retry_hint({"Content-Type": "text/plain"}, now=NOW) is None
    assert parse_retry_hint({}, now=NOW) is None
    assert parse_retry_hint(None, now=NOW) is None


def test_first_present_alias_wins() -> None:
    """Only the first present alias is consulted even if it is unusable."""

    headers = {"x-first": "garbage", "x-second": "5"}

    assert parse_retry_hint(headers, now=NOW, aliases=("x-missing", "x-second")) == NOW + 5
    assert parse_retry_hint(headers, now=NOW, aliases=("x-first", "x-second")) is None


def test_header_map_accepts_requests_headers() -> None:
    """Headers from `requests` responses are used as-is."""

    response_headers = CaseInsensitiveDict({"Retry-After": "7"})

    assert parse_retry_hint(response_headers, now=NOW) == NOW + 7
    assert HeaderMap.coerce(HeaderMap({"A": 1})).get("a") == 1
