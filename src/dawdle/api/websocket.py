"""WebSocket plumbing — one motion session per connected pointer source."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import WebSocket
from starlette.websockets import WebSocketState

from dawdle.models import DawdleSignal
from dawdle.motion.session import DawdleSession
from dawdle.notifications.handlers import SignalHandler

logger = structlog.get_logger(__name__)


class WebSocketHandler(SignalHandler):
    """Push signals back over the socket that produced the samples."""

    name = "websocket"

    def __init__(self, ws: WebSocket) -> None:
        super().__init__()
        self._ws = ws

    async def send(self, signal: DawdleSignal) -> bool:
        if self._ws.client_state != WebSocketState.CONNECTED:
            return False
        await self._ws.send_json({"type": signal.name, **signal.model_dump(mode="json")})
        return True


def parse_message(text: str) -> Any | None:
    """Decode one inbound text frame.  ``None`` if it is not JSON."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


@dataclass
class SessionRegistry:
    """Live sessions keyed by id, for status reporting."""

    sessions: dict[str, DawdleSession] = field(default_factory=dict)
    total_opened: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def add(self, session: DawdleSession) -> None:
        async with self._lock:
            self.sessions[session.session_id] = session
            self.total_opened += 1

    async def remove(self, session: DawdleSession) -> None:
        async with self._lock:
            self.sessions.pop(session.session_id, None)

    @property
    def active_count(self) -> int:
        return len(self.sessions)

    def snapshot(self) -> dict[str, Any]:
        return {
            "active": self.active_count,
            "total_opened": self.total_opened,
            "sessions": {
                sid: {"samples": len(s.buffer), "pending": s.pending}
                for sid, s in self.sessions.items()
            },
        }
