"""FastAPI application — pointer intake over WebSocket plus status endpoints.

This module wires together:
- The optional session-history store
- One :class:`DawdleSession` per ``/ws/pointer`` connection
- Health, configuration and history endpoints
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect

from dawdle.api.websocket import SessionRegistry, WebSocketHandler, parse_message
from dawdle.config import Settings, get_settings
from dawdle.motion.session import DawdleSession
from dawdle.notifications.handlers import create_dispatcher
from dawdle.storage.database import configure_engine, dispose_db, init_db
from dawdle.storage.history import SessionHistory, SqlKeyValueStore

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application for *settings* (defaults to :func:`get_settings`)."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hooks."""
        app.state.history = None
        if settings.history_enabled:
            await init_db(configure_engine(settings.database_url))
            app.state.history = SessionHistory(
                SqlKeyValueStore(),
                key=settings.history_key,
                max_entries=settings.history_max_entries,
            )
            logger.info("server.history_ready", key=settings.history_key)

        logger.info("server.started", port=settings.api_port)

        yield  # ← application runs

        for session in list(app.state.sessions.sessions.values()):
            await session.close()
        if settings.history_enabled:
            await dispose_db()
        logger.info("server.stopped")

    app = FastAPI(
        title="Dawdle API",
        description="Pointer-motion efficiency as an emotional signal.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sessions = SessionRegistry()
    app.state.history = None

    # ── System ────────────────────────────────────────────────

    @app.get("/health", tags=["system"])
    async def health(request: Request):
        return {
            "status": "ok",
            "version": VERSION,
            "active_sessions": request.app.state.sessions.active_count,
        }

    @app.get("/config", tags=["system"])
    async def config():
        """Effective analysis configuration."""
        return {
            "emotional_distance": settings.emotional_distance,
            "emotional_velocity": settings.emotional_velocity,
            "action_delay_ms": settings.action_delay_ms,
            "debounce_window_ms": settings.debounce_window_ms,
            "baseline_window": settings.baseline_window,
            "baseline_mode": settings.baseline_mode,
            "history_enabled": settings.history_enabled,
        }

    @app.get("/sessions", tags=["system"])
    async def sessions(request: Request):
        return request.app.state.sessions.snapshot()

    # ── History ───────────────────────────────────────────────

    @app.get("/history", tags=["history"])
    async def history(request: Request, session_id: str | None = Query(None)):
        """Persisted verdicts, oldest first, optionally for one session."""
        store: SessionHistory | None = request.app.state.history
        if store is None:
            raise HTTPException(404, "History is disabled.")
        entries = await (store.for_session(session_id) if session_id else store.entries())
        return [e.model_dump(mode="json") for e in entries]

    # ── WebSocket (pointer intake) ────────────────────────────

    @app.websocket("/ws/pointer")
    async def ws_pointer(ws: WebSocket):
        """Pointer-event intake.

        Send one JSON object per pointer move, ``{"x": 10, "y": 20}``.
        Samples are timestamped on receipt.  ``dawdle`` signals for this
        connection's session are pushed back on the same socket.
        Malformed messages are dropped.
        """
        await ws.accept()
        dispatcher = create_dispatcher(settings, history=ws.app.state.history)
        dispatcher.add_handler(WebSocketHandler(ws))
        session = DawdleSession(settings, dispatcher=dispatcher)
        registry: SessionRegistry = ws.app.state.sessions
        await registry.add(session)
        logger.info("ws.session_opened", session=session.session_id, total=registry.active_count)

        try:
            while True:
                message = parse_message(await ws.receive_text())
                if message is None or not session.ingest(message):
                    logger.debug("ws.message_dropped", session=session.session_id)
        except WebSocketDisconnect:
            pass
        finally:
            await session.close()
            await registry.remove(session)
            logger.info("ws.session_closed", session=session.session_id, total=registry.active_count)

    return app


app = create_app()
