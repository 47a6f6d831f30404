"""Illustrative drivers exercising a limiter end to end.

Responsibilities:
- Simulate an API that answers with random `Retry-After` hints.
- Drive a limiter of any discipline against it on an asyncio loop.
- Probe a real HTTP endpoint through a QUEUE limiter using `requests`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import random
from typing import Callable, Mapping

import requests

from .config import LimiterConfig
from .errors import CallGateError
from .limiter import AsyncioScheduler, Discipline, LimiterCore


DEMO_CALL_KEY = "demo:simulated-api"
_SETTLE_POLL_SECONDS = 0.02


@dataclass(frozen=True, slots=True)
class SimulatedResponse:
    body: str
    headers: Mapping[str, str | int]


@dataclass(slots=True)
class SimulatedApi:
    """Fake API answering every call with a random `Retry-After` in seconds."""

    max_retry_after: int = 3
    rng: random.Random = field(default_factory=random.Random)
    calls: int = 0

    def call(self) -> SimulatedResponse:
        self.calls += 1
        return SimulatedResponse(
            body=f"message #{self.calls}",
            headers={"Retry-After": self.rng.randint(0, self.max_retry_after)},
        )


@dataclass(slots=True)
class DemoReport:
    """Outcome counters of one demo run."""

    dispatched: int = 0
    delivered: int = 0
    failures: int = 0
    drains: int = 0
    gave_up: bool = False


async def run_demo(
    config: LimiterConfig,
    *,
    api: SimulatedApi,
    messages: int,
    attempts: int,
    interval_seconds: float,
    echo: Callable[[str], None],
) -> DemoReport:
    """Send `messages` calls through a limiter, giving up after `attempts` failures."""

    limiter = LimiterCore.from_config(config, scheduler=AsyncioScheduler())
    report = DemoReport()

    def _deliver(report_headers: Callable[[Mapping[str, str | int]], float]) -> str:
        response = api.call()
        report_headers(response.headers)
        report.delivered += 1
        echo(
            f"[api] {response.body} retry_after={response.headers['Retry-After']}s "
            f"next_delay={max(limiter.delay_for(DEMO_CALL_KEY), 0.0):.1f}s"
        )
        return response.body

    def _on_drained() -> None:
        report.drains += 1
        if config.discipline is Discipline.QUEUE:
            echo("[limiter] queue is empty")

    for _ in range(messages):
        try:
            if config.discipline is Discipline.DEFERRED:
                await limiter.dispatch(
                    DEMO_CALL_KEY,
                    lambda resolve, _reject, report_headers: resolve(_deliver(report_headers)),
                    _on_drained,
                )
            else:
                limiter.dispatch(DEMO_CALL_KEY, _deliver, _on_drained)
            report.dispatched += 1
        except CallGateError as exc:
            report.failures += 1
            echo(f"[limiter] dispatch failed: {exc.detail}")
            if report.failures >= attempts:
                echo("[limiter] giving up")
                report.gave_up = True
                break
        await asyncio.sleep(interval_seconds)

    while limiter.pending_timers() or limiter.is_draining(DEMO_CALL_KEY):
        await asyncio.sleep(_SETTLE_POLL_SECONDS)
    return report


@dataclass(frozen=True, slots=True)
class ProbeResult:
    index: int
    status_code: int
    delay_seconds: float


async def run_probe(
    url: str,
    *,
    count: int,
    timeout_seconds: float,
    echo: Callable[[str], None],
    config: LimiterConfig | None = None,
) -> list[ProbeResult]:
    """GET `url` `count` times through a QUEUE limiter honoring `Retry-After`.

    The limit of `config` is used as queue capacity; its discipline is ignored.
    Transport failures are reported with status code 0 and do not stop the probe.
    Requests that do not fit in the queue are skipped.
    """

    queue_config = (config or LimiterConfig()).with_overrides(discipline=Discipline.QUEUE.value)
    limiter = LimiterCore.from_config(queue_config, scheduler=AsyncioScheduler())
    results: list[ProbeResult] = []
    progress = {"dispatched": 0, "settled": 0}
    finished = asyncio.Event()

    def _settle() -> None:
        progress["settled"] += 1
        if progress["settled"] >= progress["dispatched"]:
            finished.set()

    def _request(index: int) -> Callable[[Callable[[Mapping[str, str]], float]], None]:
        def _action(report_headers: Callable[[Mapping[str, str]], float]) -> None:
            try:
                try:
                    response = requests.get(url, timeout=timeout_seconds)
                except requests.RequestException as exc:
                    results.append(ProbeResult(index=index, status_code=0, delay_seconds=0.0))
                    echo(f"[probe] #{index} failed: {exc}")
                    return
                report_headers(response.headers)
                result = ProbeResult(
                    index=index,
                    status_code=response.status_code,
                    delay_seconds=max(limiter.delay_for(url), 0.0),
                )
                results.append(result)
                echo(
                    f"[probe] #{result.index} status={result.status_code} "
                    f"next_delay={result.delay_seconds:.1f}s"
                )
            finally:
                _settle()

        return _action

    for index in range(1, count + 1):
        try:
            limiter.dispatch(url, _request(index))
        except CallGateError as exc:
            echo(f"[probe] #{index} skipped: {exc.detail}")
            break
        progress["dispatched"] += 1

    if progress["dispatched"]:
        await finished.wait()
    return results
