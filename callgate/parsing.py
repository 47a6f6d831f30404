"""Shared parsing helpers for configuration and CLI value normalization."""

from __future__ import annotations

from .limiter.state import DISABLED, CancelScope, Discipline


_DISCIPLINE_ALIASES = {
    "immediate": Discipline.IMMEDIATE,
    "single": Discipline.IMMEDIATE,
    "queue": Discipline.QUEUE,
    "deferred": Discipline.DEFERRED,
    "promise": Discipline.DEFERRED,
}


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_discipline(value: object) -> Discipline:
    """Parse a discipline name, accepting the legacy `single`/`promise` aliases."""

    if isinstance(value, Discipline):
        return value

    normalized = normalize_optional_string(value)
    if normalized is not None:
        discipline = _DISCIPLINE_ALIASES.get(normalized.lower())
        if discipline is not None:
            return discipline

    raise ValueError(
        "`discipline` must be one of `immediate`, `queue`, `deferred` "
        "(aliases: `single`, `promise`)."
    )


def parse_cancel_scope(value: object) -> CancelScope:
    """Parse a cancellation scope name (`key` or `instance`)."""

    if isinstance(value, CancelScope):
        return value

    normalized = normalize_optional_string(value)
    if normalized is not None:
        try:
            return CancelScope(normalized.lower())
        except ValueError:
            pass

    raise ValueError("`cancel_scope` must be `key` or `instance`.")


def parse_limit(value: object) -> int:
    """Parse a limit parameter: `-1` disables it, otherwise a non-negative integer.

    Raises:
        ValueError: If the value is not an integer or is below `-1`.
    """

    if isinstance(value, bool):
        raise ValueError("`limit` must be an integer (`-1` disables the limit).")
    if isinstance(value, int):
        parsed = value
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError("`limit` must be an integer (`-1` disables the limit).")
        try:
            parsed = int(normalized)
        except ValueError as exc:
            raise ValueError(
                "`limit` must be an integer (`-1` disables the limit)."
            ) from exc

    if parsed < DISABLED:
        raise ValueError("`limit` must be `-1` or a non-negative integer.")
    return parsed
