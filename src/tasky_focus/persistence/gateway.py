# src/tasky_focus/persistence/gateway.py

from __future__ import annotations

import asyncio
import logging

from ..core.ports import SessionNote
from .session_store import FocusSessionStore

logger = logging.getLogger(__name__)


class LocalSessionGateway:
    """
    SessionGateway backed by the local SQLite store.

    SQLite calls are blocking, so each one runs in a worker thread and the
    event loop driving the focus engine stays responsive.

    verify() checks that the record can be read back; after an end write it
    also requires the end time to be set.
    """

    def __init__(self, store: FocusSessionStore) -> None:
        self.store = store
        self._ended: set[str] = set()

    async def create_session(
            self,
            user_id: str,
            task_id: str | None = None,
            intention: str | None = None,
            background: str | None = None,
    ) -> str:
        return await asyncio.to_thread(
            self.store.create_session,
            user_id=user_id,
            task_id=task_id,
            intention=intention,
            background_ref=background,
        )

    async def end_session(
            self,
            session_id: str,
            duration_minutes: int,
            notes: list[SessionNote],
            pomodoro_count: int,
    ) -> None:
        await asyncio.to_thread(
            self.store.end_session,
            session_id,
            duration_minutes=duration_minutes,
            notes=notes,
            pomodoro_count=pomodoro_count,
        )
        self._ended.add(session_id)

    async def verify(self, session_id: str) -> bool:
        record = await asyncio.to_thread(self.store.get_session, session_id)
        if record is None:
            logger.debug("verify: session %s not found", session_id)
            return False
        if session_id in self._ended and not record.ended:
            return False
        return True
