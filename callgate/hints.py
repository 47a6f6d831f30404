"""Rate-limit hint extraction from response headers.

Responsibilities:
- Provide a case-insensitive header mapping accepted by every reporting callback.
- Turn `Retry-After`-style header values into an absolute not-before timestamp.

Servers express retry hints either as a relative number of seconds or as an
absolute date. Values below one month of seconds are read as relative delays;
everything else is tried as an absolute point in time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import math
from typing import Mapping, Union

from requests.structures import CaseInsensitiveDict


HeaderValue = Union[str, int, float]

RETRY_AFTER_HEADERS: tuple[str, ...] = ("retry-after",)
SECONDS_IN_MONTH = 2_678_400
# Widest instant a millisecond epoch number may denote.
MAX_EPOCH_MILLISECONDS = 8.64e15


class HeaderMap(CaseInsensitiveDict):
    """Header name to value mapping with case-insensitive lookup.

    When two input keys differ only by case, the one seen last wins.
    """

    @classmethod
    def coerce(cls, headers: Mapping[str, HeaderValue] | None) -> "HeaderMap":
        """Return `headers` as a `HeaderMap`, wrapping plain mappings."""

        if isinstance(headers, HeaderMap):
            return headers
        return cls(headers or {})


def parse_retry_hint(
    headers: Mapping[str, HeaderValue] | None,
    *,
    now: float,
    aliases: tuple[str, ...] = RETRY_AFTER_HEADERS,
) -> float | None:
    """Return the not-before timestamp (epoch seconds) hinted by `headers`.

    Args:
        headers: Response headers, looked up case-insensitively.
        now: Current wall-clock time in epoch seconds.
        aliases: Ordered header names to consult; the first present one wins.

    Returns:
        Candidate timestamp, or `None` when no recognized header is present or
        its value cannot be interpreted.
    """

    header_map = HeaderMap.coerce(headers)
    for alias in aliases:
        value = header_map.get(alias)
        if value is None:
            continue
        return _interpret_hint_value(value, now)
    return None


def _interpret_hint_value(value: HeaderValue, now: float) -> float | None:
    """Interpret one hint value as relative seconds or an absolute timestamp."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if 0 <= value < SECONDS_IN_MONTH:
            return now + value
        # Numbers outside the relative window are epoch milliseconds.
        if abs(value) > MAX_EPOCH_MILLISECONDS:
            return None
        return value / 1000.0

    if isinstance(value, str):
        seconds = _as_relative_seconds(value)
        if seconds is not None:
            return now + seconds
        return _parse_absolute_date(value)
    return None


def _as_relative_seconds(value: str) -> float | None:
    """Return a numeric string as seconds when it lies in the relative window."""

    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if 0 <= seconds < SECONDS_IN_MONTH:
        return seconds
    return None


def _parse_absolute_date(value: str) -> float | None:
    """Parse an HTTP-date or ISO-8601 string into epoch seconds."""

    text = value.strip()
    if not text:
        return None

    parsed: datetime | None
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()
