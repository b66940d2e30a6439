"""Zone comparison — is the newest action anomalous against the baseline?"""

from __future__ import annotations

from typing import Sequence

import structlog

from dawdle.models import Action, Metrics, ZoneVerdict
from dawdle.motion.metrics import BaselineMode, aggregate_metrics, calc_metrics

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

EMOTIONAL_DISTANCE = 1.30  # 30% further
EMOTIONAL_VELOCITY = 0.83  # 17% slower


def check_zones(
    baseline: Metrics,
    candidate: Metrics,
    *,
    distance_threshold: float = EMOTIONAL_DISTANCE,
    velocity_threshold: float = EMOTIONAL_VELOCITY,
) -> ZoneVerdict | None:
    """Compare *candidate* metrics against *baseline* metrics.

    Returns ``None`` when either ratio would be undefined or infinite
    (zero baseline distance, a missing velocity, or a zero baseline
    velocity).  The two flags are independent of each other.
    """
    if baseline.distance <= 0:
        return None
    if baseline.velocity is None or candidate.velocity is None or baseline.velocity <= 0:
        return None

    distance_ratio = candidate.distance / baseline.distance
    velocity_ratio = candidate.velocity / baseline.velocity
    return ZoneVerdict(
        distance_ratio=distance_ratio,
        velocity_ratio=velocity_ratio,
        distance_in_zone=distance_ratio > distance_threshold,
        velocity_in_zone=velocity_ratio < velocity_threshold,
    )


def compare_actions(
    actions: Sequence[Action],
    *,
    distance_threshold: float = EMOTIONAL_DISTANCE,
    velocity_threshold: float = EMOTIONAL_VELOCITY,
    baseline_window: int | None = None,
    baseline_mode: BaselineMode = "combined",
) -> ZoneVerdict | None:
    """Compare the most recent action against every action before it.

    Parameters
    ----------
    actions
        Completed actions, oldest first.
    baseline_window
        When set, only the last *baseline_window* actions preceding the
        candidate form the baseline.
    baseline_mode
        How the baseline set is aggregated, see :func:`aggregate_metrics`.
    """
    if len(actions) < 2:
        logger.debug("zones.insufficient_history", actions=len(actions))
        return None

    candidate = actions[-1]
    baseline = actions[:-1]
    if baseline_window is not None:
        baseline = baseline[-baseline_window:]

    baseline_metrics = aggregate_metrics(baseline, baseline_mode)
    candidate_metrics = calc_metrics(candidate)
    verdict = check_zones(
        baseline_metrics,
        candidate_metrics,
        distance_threshold=distance_threshold,
        velocity_threshold=velocity_threshold,
    )
    if verdict is None:
        logger.debug(
            "zones.degenerate_metrics",
            baseline=baseline_metrics.model_dump(),
            candidate=candidate_metrics.model_dump(),
        )
    return verdict
