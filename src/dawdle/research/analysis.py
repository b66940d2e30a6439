"""Analysis helpers — pandas-based utilities for offline trace work."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from dawdle.config import Settings, get_settings
from dawdle.models import Action, Sample
from dawdle.motion.metrics import calc_metrics
from dawdle.motion.segmenter import split_into_actions
from dawdle.motion.zones import compare_actions

TRACE_COLUMNS = ("x", "y", "timestamp")


def load_trace(path: str | Path) -> list[Sample]:
    """Load a recorded pointer trace from CSV.

    The file needs ``x``, ``y`` and ``timestamp`` (milliseconds) columns.
    Rows with missing or non-numeric values are dropped; the remaining rows
    keep their file order, which is taken to be arrival order.
    """
    df = pd.read_csv(path)
    missing = [c for c in TRACE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"trace {path} is missing columns: {', '.join(missing)}")

    df = df[list(TRACE_COLUMNS)].apply(pd.to_numeric, errors="coerce").dropna()
    return [
        Sample(x=float(row.x), y=float(row.y), timestamp=int(row.timestamp))
        for row in df.itertuples(index=False)
    ]


def actions_to_dataframe(actions: Sequence[Action]) -> pd.DataFrame:
    """One row of metrics per action.

    Columns: ``start``, ``end`` (timestamps), ``samples``, ``distance``,
    ``duration``, ``velocity``.  The index is the action number.
    """
    records = []
    for action in actions:
        m = calc_metrics(action)
        records.append({
            "start": action[0].timestamp,
            "end": action[-1].timestamp,
            "samples": len(action),
            "distance": m.distance,
            "duration": m.duration,
            "velocity": m.velocity,
        })
    df = pd.DataFrame(records, columns=["start", "end", "samples", "distance", "duration", "velocity"])
    df.index.name = "action"
    return df


def replay_verdicts(samples: Sequence[Sample], settings: Settings | None = None) -> pd.DataFrame:
    """Score a trace after each completed action.

    Every action closed by a pause (from the second on) is compared against
    the actions before it.  This is finer-grained than a live session, which
    only scores once the debounce window has elapsed; pauses shorter than
    that window still yield a row here.  Rows where no verdict could be
    produced keep ``NaN`` ratios and ``False`` flags.
    """
    settings = settings or get_settings()
    actions = split_into_actions(samples, settings.action_delay_ms)

    records = []
    for n in range(2, len(actions) + 1):
        verdict = compare_actions(
            actions[:n],
            distance_threshold=settings.emotional_distance,
            velocity_threshold=settings.emotional_velocity,
            baseline_window=settings.baseline_window,
            baseline_mode=settings.baseline_mode,
        )
        records.append({
            "action": n - 1,
            "distance_ratio": verdict.distance_ratio if verdict else float("nan"),
            "velocity_ratio": verdict.velocity_ratio if verdict else float("nan"),
            "distance_in_zone": verdict.distance_in_zone if verdict else False,
            "velocity_in_zone": verdict.velocity_in_zone if verdict else False,
        })
    columns = ["action", "distance_ratio", "velocity_ratio", "distance_in_zone", "velocity_in_zone"]
    return pd.DataFrame(records, columns=columns).set_index("action")


def compute_summary(df: pd.DataFrame) -> dict[str, Any]:
    """Return summary statistics for a per-action metrics DataFrame.

    Expects the columns produced by :func:`actions_to_dataframe`.
    """
    if df.empty:
        return {"actions": 0}

    return {
        "actions": int(len(df)),
        "distance_mean": round(float(df["distance"].mean()), 2),
        "distance_median": round(float(df["distance"].median()), 2),
        "duration_mean": round(float(df["duration"].mean()), 2),
        "velocity_mean": round(float(df["velocity"].mean()), 4) if df["velocity"].notna().any() else None,
        "total_distance": round(float(df["distance"].sum()), 2),
    }
