"""Shared test fixtures for bulkcast."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from bulkcast.engine import BatchingEngine
from bulkcast.models import Command
from bulkcast.sinks import RecordingSink

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Command fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A clock that advances by one second on every call."""
    ticks = iter(range(10_000))

    def _now() -> datetime:
        return BASE_TIME + timedelta(seconds=next(ticks))

    return _now


@pytest.fixture
def make_commands(clock) -> Callable[..., list[Command]]:
    """Build commands from texts, one second apart."""

    def _make(*texts: str) -> list[Command]:
        return [Command(text=text, timestamp=clock()) for text in texts]

    return _make


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> BatchingEngine:
    """Engine with a bulk size of 3."""
    return BatchingEngine(3)


@pytest.fixture
def recorder(engine: BatchingEngine) -> RecordingSink:
    """A recording sink subscribed to the engine fixture."""
    return RecordingSink(engine=engine)
