"""Motion session — owns the sample buffer and runs the analysis pipeline.

A :class:`DawdleSession` is created when tracking starts and closed when it
ends.  It coordinates:

1. Validating and timestamping incoming pointer events
2. Appending them to its :class:`SampleBuffer`
3. Debouncing the analysis until motion has settled
4. Segmenting, measuring and comparing actions
5. Handing any verdict to the signal dispatcher
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Callable, Mapping

import structlog
from pydantic import ValidationError

from dawdle.config import Settings, get_settings
from dawdle.models import Action, DawdleSignal, PointerEvent, Sample, ZoneVerdict
from dawdle.motion.buffer import SampleBuffer
from dawdle.motion.debounce import Debouncer
from dawdle.motion.segmenter import split_into_actions
from dawdle.motion.zones import compare_actions
from dawdle.notifications.handlers import CallbackHandler, SignalCallback, SignalDispatcher

logger = structlog.get_logger(__name__)

Clock = Callable[[], int]


def monotonic_ms() -> int:
    """Monotonic clock in whole milliseconds."""
    return time.monotonic_ns() // 1_000_000


class DawdleSession:
    """Single-session pointer-motion analysis.

    Parameters
    ----------
    settings : Settings
        Thresholds, action delay and debounce window.
    dispatcher : SignalDispatcher
        Receives a :class:`DawdleSignal` for every verdict.
    clock : Callable[[], int]
        Monotonic millisecond clock used to timestamp samples.
    session_id : str
        Identifier carried on signals and history entries.

    All methods except :meth:`ingest_threadsafe` must be called from the
    event loop that runs the session.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        dispatcher: SignalDispatcher | None = None,
        clock: Clock = monotonic_ms,
        session_id: str | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._dispatcher = dispatcher or SignalDispatcher()
        self._clock = clock
        self._loop = loop
        self.session_id = session_id or str(uuid.uuid4())
        self.buffer = SampleBuffer()
        self._debouncer = Debouncer(
            self._on_settled,
            wait=self._settings.debounce_window_ms / 1000,
            loop=loop,
        )
        self._tasks: set[asyncio.Task[Any]] = set()
        self.last_verdict: ZoneVerdict | None = None
        self._log = logger.bind(session=self.session_id)

    # ── Configuration ─────────────────────────────────────────

    @property
    def dispatcher(self) -> SignalDispatcher:
        return self._dispatcher

    def on_signal(self, callback: SignalCallback, *, zones_only: bool = False) -> None:
        """Register an in-process observer for ``dawdle`` signals."""
        self._dispatcher.add_handler(CallbackHandler(callback, zones_only=zones_only))

    # ── Input ─────────────────────────────────────────────────

    def ingest(self, event: Mapping[str, Any] | object) -> bool:
        """Record one pointer event.  Return ``False`` if it was rejected.

        *event* may be a mapping or any object exposing ``x`` and ``y``.
        Malformed events are logged and dropped; this never raises.  Events
        arriving outside a running event loop (for a session created without
        an explicit *loop*) are dropped too, since no analysis could be
        scheduled for them.
        """
        if not isinstance(event, Mapping):
            event = {"x": getattr(event, "x", None), "y": getattr(event, "y", None)}
        try:
            pointer = PointerEvent.model_validate(event)
        except ValidationError as exc:
            self._log.warning("session.sample_rejected", errors=exc.error_count())
            return False

        if self._loop is None:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                self._log.warning("session.no_event_loop")
                return False

        self.buffer.append(Sample(x=pointer.x, y=pointer.y, timestamp=self._clock()))
        self._debouncer.trigger()
        return True

    def ingest_threadsafe(self, event: Mapping[str, Any] | object) -> None:
        """Hand an event from another thread (e.g. an OS input hook) to the session loop."""
        if self._loop is None:
            raise RuntimeError("ingest_threadsafe needs a session created with an explicit loop")
        self._loop.call_soon_threadsafe(self.ingest, event)

    # ── Analysis ──────────────────────────────────────────────

    def actions(self, now: int | None = None) -> list[Action]:
        return split_into_actions(self.buffer.snapshot(), self._settings.action_delay_ms, now)

    def analyse(self, now: int | None = None) -> ZoneVerdict | None:
        """Segment, measure and compare the current buffer.

        Returns ``None`` when there is not enough history or the metrics are
        degenerate.  *now* is forwarded to the segmenter; ``None`` treats the
        buffer as settled.
        """
        return self._compare(self.actions(now))

    def _compare(self, actions: list[Action]) -> ZoneVerdict | None:
        s = self._settings
        return compare_actions(
            actions,
            distance_threshold=s.emotional_distance,
            velocity_threshold=s.emotional_velocity,
            baseline_window=s.baseline_window,
            baseline_mode=s.baseline_mode,
        )

    def _on_settled(self) -> None:
        # The quiet period outlasts the action delay, so the trailing run is final.
        actions = self.actions()
        verdict = self._compare(actions)
        if verdict is None:
            self._log.debug("session.no_verdict", actions=len(actions))
            return

        self.last_verdict = verdict
        self._log.info(
            "session.verdict",
            actions=len(actions),
            distance_in_zone=verdict.distance_in_zone,
            velocity_in_zone=verdict.velocity_in_zone,
        )
        signal = DawdleSignal(
            session_id=self.session_id,
            verdict=verdict,
            action_count=len(actions),
        )
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._dispatcher.dispatch(signal))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ── Lifecycle ─────────────────────────────────────────────

    @property
    def pending(self) -> bool:
        """``True`` while an analysis is scheduled but has not run yet."""
        return self._debouncer.pending

    @property
    def fire_count(self) -> int:
        return self._debouncer.fire_count

    def flush(self) -> bool:
        """Run a scheduled analysis now instead of waiting for the window."""
        return self._debouncer.flush()

    def reset(self) -> None:
        """Restart the session: forget every sample and any pending analysis."""
        self._debouncer.cancel()
        self.buffer.clear()
        self.last_verdict = None
        self._log.info("session.reset")

    async def drain(self) -> None:
        """Wait for in-flight signal deliveries."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel any pending analysis and wait for in-flight deliveries."""
        self._debouncer.cancel()
        await self.drain()
        self._log.info("session.closed", samples=len(self.buffer))
