"""Action segmentation — split a sample stream into actions at pauses.

An *action* is a contiguous run of samples in which no two consecutive
samples are further apart in time than the action delay.  A longer gap
marks the boundary between two actions.
"""

from __future__ import annotations

from typing import Sequence

from dawdle.models import Action, Sample

# Default pause (ms) after which the next sample starts a new action.
ACTION_DELAY_MS = 200


def scan_boundaries(
    samples: Sequence[Sample],
    action_delay: int = ACTION_DELAY_MS,
) -> tuple[list[tuple[int, int]], int]:
    """Scan *samples* for pauses longer than *action_delay*.

    Returns
    -------
    tuple[list[tuple[int, int]], int]
        The ``(start, end)`` index pairs (end exclusive) of every action
        closed by a pause, oldest first, and the start index of the trailing
        candidate action that no pause has closed yet.  The trailing
        candidate is empty when *samples* is empty.

    Notes
    -----
    The previous timestamp starts at 0, so the check on the first sample
    normally sees a large gap.  That gap would close an empty slice, which
    is skipped: actions are never empty.
    """
    closed: list[tuple[int, int]] = []
    start = 0
    last_timestamp = 0

    for i, sample in enumerate(samples):
        if sample.timestamp - last_timestamp > action_delay:
            if i > start:
                closed.append((start, i))
            start = i
        last_timestamp = sample.timestamp

    return closed, start


def split_into_actions(
    samples: Sequence[Sample],
    action_delay: int = ACTION_DELAY_MS,
    now: int | None = None,
) -> list[Action]:
    """Partition *samples* into actions, oldest first.

    Actions closed by a pause are always returned.  The trailing run is
    returned as well once it is settled:

    * ``now is None``: the caller declares the sequence final (the
      debounce window elapsed, or an offline trace is being replayed);
    * otherwise the trailing run is settled when more than *action_delay*
      milliseconds separate its last sample from *now*.

    Example::

        >>> s = [Sample(x=0, y=0, timestamp=0), Sample(x=3, y=4, timestamp=50),
        ...      Sample(x=3, y=4, timestamp=300)]
        >>> [len(a) for a in split_into_actions(s, 200)]
        [2, 1]
    """
    closed, trailing_start = scan_boundaries(samples, action_delay)
    actions: list[Action] = [tuple(samples[start:end]) for start, end in closed]

    if trailing_start < len(samples):
        settled = now is None or now - samples[-1].timestamp > action_delay
        if settled:
            actions.append(tuple(samples[trailing_start:]))

    return actions
