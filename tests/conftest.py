"""Shared pytest fixtures."""

from __future__ import annotations

import pytest
import structlog

from dawdle.config import Settings
from dawdle.models import Sample


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, now: int = 10_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_action(
    start: int,
    step_px: float,
    steps: int = 10,
    step_ms: int = 100,
    origin: tuple[float, float] = (0.0, 0.0),
) -> list[Sample]:
    """A straight horizontal movement of *steps* equal steps starting at *start* ms."""
    x0, y0 = origin
    return [
        Sample(x=x0 + i * step_px, y=y0, timestamp=start + i * step_ms)
        for i in range(steps + 1)
    ]


def feed(session, clock: FakeClock, samples: list[Sample]) -> None:
    """Ingest *samples* with the session clock set to each sample's timestamp."""
    for s in samples:
        clock.now = s.timestamp
        assert session.ingest({"x": s.x, "y": s.y})


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def fast_settings() -> Settings:
    """Short windows so debounce tests run in real time."""
    return Settings(_env_file=None, action_delay_ms=20, debounce_window_ms=60)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def baseline_action() -> list[Sample]:
    """100 px in 1000 ms (0.1 px/ms)."""
    return make_action(start=1_000, step_px=10)


@pytest.fixture
def far_action() -> list[Sample]:
    """140 px in 1000 ms (0.14 px/ms), after a 1 s pause."""
    return make_action(start=3_000, step_px=14)


@pytest.fixture
def slow_action() -> list[Sample]:
    """75 px in 1000 ms (0.075 px/ms), after a 1 s pause."""
    return make_action(start=3_000, step_px=7.5)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any logging configuration a test installed."""
    yield
    structlog.reset_defaults()
