"""Movement metrics — distance, duration and velocity of an action."""

from __future__ import annotations

import math
from typing import Literal, Sequence

from dawdle.models import Action, Metrics, Sample

BaselineMode = Literal["combined", "mean"]


def point_distance(a: Sample, b: Sample) -> float:
    """Euclidean distance between two samples, in pixels."""
    return math.hypot(b.x - a.x, b.y - a.y)


def _accumulate(samples: Sequence[Sample]) -> tuple[float, int]:
    distance = 0.0
    duration = 0
    for prev, cur in zip(samples, samples[1:]):
        distance += point_distance(prev, cur)
        duration += cur.timestamp - prev.timestamp
    return distance, duration


def _velocity(distance: float, duration: int) -> float | None:
    # Zero duration carries no velocity signal.
    return distance / duration if duration > 0 else None


def calc_metrics(samples: Sequence[Sample]) -> Metrics:
    """Reduce one action to its :class:`Metrics`.

    Velocity is total distance over total duration, not a mean of the
    per-step velocities.  Fewer than two samples yield zero distance, zero
    duration and no velocity.
    """
    distance, duration = _accumulate(samples)
    return Metrics(distance=distance, duration=duration, velocity=_velocity(distance, duration))


def aggregate_metrics(actions: Sequence[Action], mode: BaselineMode = "combined") -> Metrics:
    """Metrics of a set of actions treated as one combined action.

    Distance and duration are summed over each action's own consecutive
    pairs; the pause and jump between two actions is not movement and is
    left out.  With ``mode="mean"`` distance and duration are divided by the
    number of actions, which describes a typical action rather than the
    whole set.  Velocity is total distance over total duration either way.
    """
    total_distance = 0.0
    total_duration = 0
    for action in actions:
        distance, duration = _accumulate(action)
        total_distance += distance
        total_duration += duration

    velocity = _velocity(total_distance, total_duration)
    if mode == "mean" and actions:
        n = len(actions)
        return Metrics(
            distance=total_distance / n,
            duration=round(total_duration / n),
            velocity=velocity,
        )
    return Metrics(distance=total_distance, duration=total_duration, velocity=velocity)
