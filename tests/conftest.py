"""Shared pytest fixtures for the full callgate test suite."""

from __future__ import annotations

from typing import Iterator

import pytest
from loguru import logger

from tests.fakes import FakeClock, ManualScheduler


@pytest.fixture(autouse=True)
def _reset_loguru_sinks() -> Iterator[None]:
    """Drop sinks added during a test so later tests never write to closed streams."""

    yield
    logger.remove()


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake wall clock starting at a fixed epoch."""

    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> ManualScheduler:
    """Provide a manual scheduler driven by the fake clock."""

    return ManualScheduler(clock=clock)
