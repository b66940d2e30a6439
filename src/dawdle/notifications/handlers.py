"""Signal handlers — deliver ``dawdle`` signals to interested observers.

Architecture
~~~~~~~~~~~~
* **SignalHandler** — abstract base for delivery channels.
* **LogHandler / CallbackHandler / WebhookHandler / HistoryHandler** —
  concrete channels.
* **SignalDispatcher** — fan-out with error-isolation and results.
* **create_dispatcher()** — factory that wires handlers from settings.

Delivery is fire-and-forget from the session's point of view: nothing is
acknowledged back and a failing channel never affects the analysis.

Adding a new channel
~~~~~~~~~~~~~~~~~~~~
1. Subclass ``SignalHandler``.
2. Implement ``async send(signal) -> bool``.
3. Optionally set ``name`` for debug output.
4. Register via ``dispatcher.add_handler(...)`` or add to the factory.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Union

import httpx
import structlog

from dawdle.models import DawdleSignal, HistoryEntry

if TYPE_CHECKING:
    from dawdle.config import Settings
    from dawdle.storage.history import SessionHistory

logger = structlog.get_logger(__name__)

SignalCallback = Callable[[DawdleSignal], Union[None, Awaitable[None]]]


# ── Dispatch result ───────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome summary for a single ``dispatch()`` call."""

    signal_id: str | None
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return len(self.failed) == 0


# ── Abstract handler ──────────────────────────────────────────


class SignalHandler(ABC):
    """Contract for signal delivery channels.

    Subclasses must implement :meth:`send`.  A handler built with
    ``zones_only=True`` skips verdicts where neither flag is set.
    """

    name: str = "base"

    def __init__(self, *, zones_only: bool = False) -> None:
        self.zones_only = zones_only

    @abstractmethod
    async def send(self, signal: DawdleSignal) -> bool:
        """Deliver a signal.  Return ``True`` on success."""

    def should_handle(self, signal: DawdleSignal) -> bool:
        """Return ``False`` to skip this signal."""
        return signal.verdict.in_zone or not self.zones_only


# ── Concrete handlers ────────────────────────────────────────


class LogHandler(SignalHandler):
    """Write signals to the structured log (always enabled)."""

    name = "log"

    async def send(self, signal: DawdleSignal) -> bool:
        logger.info(
            "notification.dawdle",
            session=signal.session_id,
            actions=signal.action_count,
            distance_ratio=round(signal.verdict.distance_ratio, 3),
            velocity_ratio=round(signal.verdict.velocity_ratio, 3),
            distance_in_zone=signal.verdict.distance_in_zone,
            velocity_in_zone=signal.verdict.velocity_in_zone,
        )
        return True


class CallbackHandler(SignalHandler):
    """Hand signals to an in-process callable (sync or async)."""

    def __init__(self, callback: SignalCallback, *, name: str | None = None, zones_only: bool = False) -> None:
        super().__init__(zones_only=zones_only)
        self._callback = callback
        self.name = name or getattr(callback, "__qualname__", "callback")

    async def send(self, signal: DawdleSignal) -> bool:
        result = self._callback(signal)
        if inspect.isawaitable(result):
            await result
        return True


class WebhookHandler(SignalHandler):
    """POST signal JSON to an external webhook URL."""

    name = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        zones_only: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(zones_only=zones_only)
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def send(self, signal: DawdleSignal) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=signal.model_dump(mode="json"))
                resp.raise_for_status()
            logger.info("notification.webhook_sent", url=self._url, signal_id=signal.id)
            return True
        except httpx.HTTPError as exc:
            logger.error("notification.webhook_failed", url=self._url, error=str(exc))
            return False


class HistoryHandler(SignalHandler):
    """Append every signal to the persisted session history."""

    name = "history"

    def __init__(self, history: SessionHistory) -> None:
        super().__init__()
        self._history = history

    async def send(self, signal: DawdleSignal) -> bool:
        await self._history.append(HistoryEntry.from_signal(signal))
        return True


# ── Dispatcher ────────────────────────────────────────────────


class SignalDispatcher:
    """Fan-out signals to registered handlers with error isolation.

    Each handler is invoked independently; a failure in one channel
    never blocks delivery to the others.
    """

    def __init__(self, *, handlers: list[SignalHandler] | None = None) -> None:
        self._handlers: list[SignalHandler] = handlers if handlers is not None else [LogHandler()]

    # ── Handler management ────────────────────────────────────

    def add_handler(self, handler: SignalHandler) -> None:
        self._handlers.append(handler)

    def remove_handler(self, name: str) -> bool:
        """Remove the first handler matching *name*. Return ``True`` if found."""
        for i, h in enumerate(self._handlers):
            if h.name == name:
                self._handlers.pop(i)
                return True
        return False

    @property
    def handler_names(self) -> list[str]:
        return [h.name for h in self._handlers]

    # ── Dispatch ──────────────────────────────────────────────

    async def dispatch(self, signal: DawdleSignal) -> DispatchResult:
        """Send *signal* to every handler, collecting per-handler outcomes.

        A handler that raises is caught, logged, and marked as failed so
        remaining handlers still execute.
        """
        sent: list[str] = []
        failed: list[str] = []

        for handler in self._handlers:
            if not handler.should_handle(signal):
                continue
            try:
                ok = await handler.send(signal)
                (sent if ok else failed).append(handler.name)
            except Exception:
                logger.exception(
                    "notification.handler_error",
                    handler=handler.name,
                    signal_id=signal.id,
                )
                failed.append(handler.name)

        result = DispatchResult(signal_id=signal.id, sent=sent, failed=failed)
        if result.failed:
            logger.warning(
                "notification.partial_failure",
                signal_id=signal.id,
                failed=result.failed,
            )
        return result


# ── Factory ───────────────────────────────────────────────────


def create_dispatcher(settings: Settings, history: SessionHistory | None = None) -> SignalDispatcher:
    """Build a :class:`SignalDispatcher` wired from application settings.

    * **LogHandler** is always registered.
    * **WebhookHandler** is added when ``settings.webhook_url`` is non-empty.
    * **HistoryHandler** is added when a *history* is given.
    """
    dispatcher = SignalDispatcher()

    if settings.webhook_url:
        dispatcher.add_handler(
            WebhookHandler(settings.webhook_url, zones_only=settings.webhook_zones_only),
        )

    if history is not None:
        dispatcher.add_handler(HistoryHandler(history))

    return dispatcher
