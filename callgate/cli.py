"""Command-line interface for callgate.

Responsibilities:
- Expose user-facing commands for hint parsing and limiter demonstrations.
- Convert CLI arguments and config files into `LimiterConfig`.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
import random
import time
from typing import Annotated

import typer

from .cli_rendering import (
    echo_demo_summary,
    echo_hint,
    echo_limiter_config,
    echo_probe_summary,
    exit_with_command_error,
)
from .config import ConfigLoader, LimiterConfig
from .demo import SimulatedApi, run_demo, run_probe
from .hints import HeaderMap, parse_retry_hint
from .parsing import normalize_optional_string
from .telemetry.logger import configure_logging

app = typer.Typer(
    name="callgate",
    no_args_is_help=True,
    help="callgate CLI.",
)


@app.callback()
def _configure(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log every limiter event to stderr.")
    ] = False,
) -> None:
    """Client-side call-rate governor driven by `Retry-After` hints."""

    configure_logging(level="DEBUG" if verbose else "WARNING")


def _load_yaml_config(config_path: Path | None) -> LimiterConfig | None:
    """Load a YAML config file when requested and map failures to readable errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: `{config_path}`.") from exc


def _resolve_limiter_config(
    config_file: Path | None,
    discipline: str | None,
    limit: int | None,
    cancel_scope: str | None,
) -> LimiterConfig:
    """Resolve effective config: CLI options > YAML file > `CALLGATE_*` environment."""

    loaded_config = _load_yaml_config(config_file)
    if loaded_config is None:
        loaded_config = ConfigLoader.from_env()
    return loaded_config.with_overrides(
        discipline=discipline,
        limit=limit,
        cancel_scope=cancel_scope,
    )


def _parse_header_option(raw: str) -> tuple[str, str]:
    """Split one `NAME=VALUE` header option."""

    name, separator, value = raw.partition("=")
    normalized_name = normalize_optional_string(name)
    if not separator or normalized_name is None:
        raise ValueError(f"Header `{raw}` must use the `NAME=VALUE` form.")
    return normalized_name, value.strip()


@app.command("hint")
def hint_command(
    header: Annotated[
        list[str],
        typer.Option("--header", "-H", help="Response header as NAME=VALUE (repeatable)."),
    ],
    now: Annotated[
        float | None,
        typer.Option("--now", help="Reference time in epoch seconds (default: current time)."),
    ] = None,
) -> None:
    """Print the not-before time hinted by response headers."""

    try:
        headers = HeaderMap(_parse_header_option(raw) for raw in header)
        reference = now if now is not None else time.time()
        candidate = parse_retry_hint(headers, now=reference)
        echo_hint(candidate, reference)
    except Exception as exc:
        exit_with_command_error("hint", exc)


@app.command("demo")
def demo_command(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="YAML limiter config (discipline, limit, cancel_scope)."),
    ] = None,
    discipline: Annotated[
        str | None,
        typer.Option("--discipline", help="immediate, queue or deferred."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", help="Max delay in ms, or queue capacity; -1 disables."),
    ] = None,
    cancel_scope: Annotated[
        str | None,
        typer.Option("--cancel-scope", help="Timers cancelled on limit failure: key or instance."),
    ] = None,
    messages: Annotated[int, typer.Option("--messages", min=1)] = 10,
    attempts: Annotated[
        int, typer.Option("--attempts", min=1, help="Failures tolerated before giving up.")
    ] = 5,
    interval: Annotated[
        float, typer.Option("--interval", min=0.0, help="Seconds between dispatches.")
    ] = 0.5,
    max_retry_after: Annotated[
        int, typer.Option("--max-retry-after", min=0, help="Upper bound of simulated hints.")
    ] = 3,
    seed: Annotated[int | None, typer.Option("--seed")] = None,
) -> None:
    """Drive a limiter against a simulated API answering with random `Retry-After`."""

    try:
        config = _resolve_limiter_config(config_file, discipline, limit, cancel_scope)
        echo_limiter_config(config)
        report = asyncio.run(
            run_demo(
                config,
                api=SimulatedApi(max_retry_after=max_retry_after, rng=random.Random(seed)),
                messages=messages,
                attempts=attempts,
                interval_seconds=interval,
                echo=typer.echo,
            )
        )
    except Exception as exc:
        exit_with_command_error("demo", exc)

    echo_demo_summary(report)


@app.command("probe")
def probe_command(
    url: Annotated[str, typer.Argument(help="URL to GET repeatedly.")],
    count: Annotated[int, typer.Option("--count", min=1)] = 3,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="YAML limiter config; `limit` is the queue capacity."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", help="Queue capacity; -1 disables."),
    ] = None,
    timeout: Annotated[
        float, typer.Option("--timeout", min=0.1, help="Per-request timeout in seconds.")
    ] = 10.0,
) -> None:
    """GET a URL several times, spacing requests by its `Retry-After` hints."""

    try:
        config = _resolve_limiter_config(config_file, "queue", limit, None)
        echo_limiter_config(config)
        results = asyncio.run(
            run_probe(
                url,
                count=count,
                timeout_seconds=timeout,
                echo=typer.echo,
                config=config,
            )
        )
    except Exception as exc:
        exit_with_command_error("probe", exc)

    echo_probe_summary(results)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
