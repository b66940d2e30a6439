"""Motion analysis — pointer-motion efficiency as an emotional signal.

This package compares how efficiently the user performed their most recent
pointer *action* against the actions before it in the same session.

Architecture
------------
1. **Sample buffer** (`buffer.py`)
   - Append-only, arrival-ordered ``(x, y, timestamp)`` samples
2. **Segmentation** (`segmenter.py`)
   - Pauses longer than the action delay (200 ms) split actions
3. **Metrics** (`metrics.py`)
   - Path length, duration and total-over-total velocity per action
4. **Zones** (`zones.py`)
   - Newest action vs. every prior action: 30% further or 17% slower
5. **Debounce** (`debounce.py`) and **session** (`session.py`)
   - Analysis runs once motion has settled for the debounce window (1 s)

Limitations
-----------
This is a single-signal heuristic, not an emotion model.  Verdicts are
ratios against the user's own recent behaviour and carry no calibration.
"""

from dawdle.motion.buffer import SampleBuffer
from dawdle.motion.debounce import Debouncer
from dawdle.motion.metrics import aggregate_metrics, calc_metrics, point_distance
from dawdle.motion.segmenter import scan_boundaries, split_into_actions
from dawdle.motion.session import DawdleSession
from dawdle.motion.zones import check_zones, compare_actions

__all__ = [
    "DawdleSession",
    "Debouncer",
    "SampleBuffer",
    "aggregate_metrics",
    "calc_metrics",
    "check_zones",
    "compare_actions",
    "point_distance",
    "scan_boundaries",
    "split_into_actions",
]
