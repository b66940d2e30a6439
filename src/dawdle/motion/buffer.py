"""Append-only buffer of the samples recorded during one session."""

from __future__ import annotations

from dawdle.models import Sample


class SampleBuffer:
    """Ordered, append-only sequence of :class:`Sample` objects.

    Order is arrival order, which is temporal order; samples are never
    sorted or rewritten.  The buffer grows for the lifetime of the session
    and is only emptied by an explicit session restart.
    """

    def __init__(self) -> None:
        self._samples: list[Sample] = []

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def snapshot(self) -> tuple[Sample, ...]:
        """Return every sample recorded so far as an immutable tuple."""
        return tuple(self._samples)

    def clear(self) -> None:
        self._samples.clear()

    @property
    def last(self) -> Sample | None:
        return self._samples[-1] if self._samples else None

    def __len__(self) -> int:
        return len(self._samples)
