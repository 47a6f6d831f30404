"""Structured limiter event logging.

Responsibilities:
- Emit concise, deterministic per-key limiter event lines through `loguru`.
- Keep sink configuration in one place for CLI entry points.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    if isinstance(value, float):
        value = f"{value:.3f}"
    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def format_event_line(level: str, event: str, key: str, **context: object) -> str:
    """Build one `[limiter]` event line."""

    return (
        f"[limiter] level={level} key={_sanitize_context_value(key)} "
        f"event={event}{_format_context(context)}"
    )


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> int:
    """Route loguru output to `sink` with plain message formatting.

    Returns:
        The loguru handler id of the added sink.
    """

    logger.remove()
    return logger.add(sink or sys.stderr, format="{message}", level=level, colorize=False)


class LimiterEventLogger:
    """Emit deterministic limiter events for one limiter instance."""

    def __init__(self, name: str = "callgate") -> None:
        self._logger = logger.bind(limiter=name)

    def _emit(self, level: str, event: str, key: str, **context: object) -> None:
        """Emit one structured limiter log line."""

        self._logger.log(level, format_event_line(level, event, key, **context))

    def registered(self, key: str, discipline: str) -> None:
        self._emit("DEBUG", "registered", key, discipline=discipline)

    def scheduled(self, key: str, delay_seconds: float) -> None:
        self._emit("DEBUG", "scheduled", key, delay_ms=round(delay_seconds * 1000))

    def hint(self, key: str, not_before: float) -> None:
        """Emit a not-before advance caused by reported headers."""

        self._emit("INFO", "hint", key, not_before=not_before)

    def limit_exceeded(self, key: str, delay_seconds: float, limit_ms: int) -> None:
        self._emit(
            "WARNING",
            "limit_exceeded",
            key,
            delay_ms=round(delay_seconds * 1000),
            limit_ms=limit_ms,
        )

    def queue_full(self, key: str, capacity: int) -> None:
        self._emit("WARNING", "queue_full", key, capacity=capacity)

    def timers_cancelled(self, key: str, count: int, scope: str) -> None:
        self._emit("INFO", "timers_cancelled", key, count=count, scope=scope)

    def drained(self, key: str) -> None:
        self._emit("DEBUG", "drained", key)

    def action_failed(self, key: str, error_type: str) -> None:
        """Emit an action failure without the exception payload."""

        self._emit("ERROR", "action_failed", key, error_type=error_type)
