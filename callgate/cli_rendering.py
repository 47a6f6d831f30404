"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
parsed hints and demo/probe summaries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import NoReturn

import typer

from .config import LimiterConfig
from .demo import DemoReport, ProbeResult
from .errors import CallGateError


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CallGateError):
        typer.secho(
            f"{command_name} failed for key `{exc.key}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_limiter_config(config: LimiterConfig) -> None:
    """Print the effective limiter configuration."""

    limit = "disabled" if config.limit == -1 else str(config.limit)
    typer.echo(
        f"Limiter: discipline={config.discipline.value} limit={limit} "
        f"cancel_scope={config.cancel_scope.value}"
    )


def echo_hint(candidate: float | None, now: float) -> None:
    """Print a parsed not-before timestamp and its distance from `now`."""

    if candidate is None:
        typer.echo("No hint.")
        return
    moment = datetime.fromtimestamp(candidate, tz=timezone.utc)
    typer.echo(f"Not before: {moment.isoformat()} ({candidate:.3f})")
    typer.echo(f"Delay: {max(candidate - now, 0.0):.3f}s")


def echo_demo_summary(report: DemoReport) -> None:
    typer.echo(
        f"Dispatched: {report.dispatched} Delivered: {report.delivered} "
        f"Failures: {report.failures} Drains: {report.drains}"
    )


def echo_probe_summary(results: list[ProbeResult]) -> None:
    """Print per-status request counts in ascending status order."""

    counts: dict[int, int] = {}
    for result in results:
        counts[result.status_code] = counts.get(result.status_code, 0) + 1
    for status_code in sorted(counts):
        typer.echo(f"Status {status_code}: {counts[status_code]}")
