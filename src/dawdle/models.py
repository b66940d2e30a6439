"""Shared Pydantic models used across the framework."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Input ─────────────────────────────────────────────────────


class PointerEvent(BaseModel):
    """A raw pointer position as delivered by an input source.

    Validation is strict: coordinates must be real, finite numbers.
    Strings, booleans, ``NaN`` and infinities are rejected so that a
    malformed event never reaches the sample buffer.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)


class Sample(BaseModel):
    """A single recorded cursor position.

    ``timestamp`` is in monotonic milliseconds, captured at receipt.
    """

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    timestamp: int


# An action is a contiguous, non-empty run of samples.
Action = tuple[Sample, ...]


# ── Derived values ────────────────────────────────────────────


class Metrics(BaseModel):
    """Movement metrics of one action (or of a set treated as one).

    ``velocity`` is pixels per millisecond and is ``None`` when the
    duration is zero: there is no velocity signal to compare.
    """

    model_config = ConfigDict(frozen=True)

    distance: float = 0.0
    duration: int = 0
    velocity: float | None = None


class ZoneVerdict(BaseModel):
    """Outcome of comparing the newest action against the baseline."""

    model_config = ConfigDict(frozen=True)

    distance_ratio: float
    velocity_ratio: float
    distance_in_zone: bool
    velocity_in_zone: bool

    @property
    def in_zone(self) -> bool:
        return self.distance_in_zone or self.velocity_in_zone


# ── Outbound ──────────────────────────────────────────────────


class DawdleSignal(BaseModel):
    """The ``dawdle`` notification handed to observers."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "dawdle"
    session_id: str
    verdict: ZoneVerdict
    action_count: int
    timestamp: datetime = Field(default_factory=_utcnow)


class HistoryEntry(BaseModel):
    """One persisted verdict in the session history store."""

    session_id: str
    recorded_at: datetime = Field(default_factory=_utcnow)
    action_count: int
    verdict: ZoneVerdict

    @classmethod
    def from_signal(cls, signal: DawdleSignal) -> HistoryEntry:
        return cls(
            session_id=signal.session_id,
            recorded_at=signal.timestamp,
            action_count=signal.action_count,
            verdict=signal.verdict,
        )
