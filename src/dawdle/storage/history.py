"""Session history — verdicts kept across sessions in a key-value store.

The history lives under a single stable key (``dawdle-store`` by default).
Its value is a JSON list of :class:`HistoryEntry` dicts, oldest first.
Appending reads the list, adds the entry, drops the oldest entries beyond
``max_entries`` and writes the list back.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dawdle.models import HistoryEntry
from dawdle.storage.database import KeyValueRow, get_session_factory

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_KEY = "dawdle-store"


class KeyValueStore(Protocol):
    """Minimal async key-value capability."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...


class MemoryKeyValueStore:
    """Process-local store, mostly for tests and history-less runs."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers never share mutable state.
        self._data[key] = json.dumps(value)


class SqlKeyValueStore:
    """Key-value store backed by the ``kv_store`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._factory = session_factory

    def _session(self) -> AsyncSession:
        return (self._factory or get_session_factory())()

    async def get(self, key: str) -> Any | None:
        async with self._session() as session:
            row = await session.get(KeyValueRow, key)
            return json.loads(row.value_json) if row is not None else None

    async def set(self, key: str, value: Any) -> None:
        async with self._session() as session:
            await session.merge(KeyValueRow(key=key, value_json=json.dumps(value)))
            await session.commit()


class SessionHistory:
    """Append-only list of verdict records under one key."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = DEFAULT_HISTORY_KEY,
        max_entries: int = 1000,
    ) -> None:
        self._store = store
        self._key = key
        self._max_entries = max_entries
        self._lock = asyncio.Lock()

    @property
    def key(self) -> str:
        return self._key

    async def append(self, entry: HistoryEntry) -> None:
        async with self._lock:
            raw = await self._raw()
            raw.append(entry.model_dump(mode="json"))
            if len(raw) > self._max_entries:
                raw = raw[-self._max_entries:]
            await self._store.set(self._key, raw)
        logger.debug("history.appended", key=self._key, total=len(raw))

    async def entries(self) -> list[HistoryEntry]:
        return [HistoryEntry.model_validate(item) for item in await self._raw()]

    async def for_session(self, session_id: str) -> list[HistoryEntry]:
        return [e for e in await self.entries() if e.session_id == session_id]

    async def _raw(self) -> list[dict[str, Any]]:
        value = await self._store.get(self._key)
        if value is None:
            return []
        if not isinstance(value, list):
            # Anything else under the key is not ours to interpret.
            logger.warning("history.unexpected_value", key=self._key, type=type(value).__name__)
            return []
        return value
