# src/tasky_focus/persistence/session_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from ..core.ports import SessionNote

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FocusSessionRecord:
    id: str
    user_id: str
    start_time: float
    created_at: float

    task_id: str | None = None
    end_time: float | None = None
    duration_minutes: int = 0
    intention: str | None = None
    notes: list[SessionNote] = field(default_factory=list)
    pomodoro_count: int = 0
    background_ref: str | None = None

    @property
    def ended(self) -> bool:
        return self.end_time is not None


class FocusSessionStore:
    """
    SQLite store for focus session records.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection (the async gateway calls
      it from worker threads)
    """

    def __init__(self, db_path: str | Path = "sessions.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_sessions()
        except Exception:
            total = -1
        logger.info("FocusSessionStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS focus_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    task_id TEXT,
                    start_time REAL NOT NULL,
                    end_time REAL,
                    duration INTEGER NOT NULL DEFAULT 0,
                    intention TEXT,
                    notes TEXT NOT NULL DEFAULT '[]',
                    pomodoro_count INTEGER NOT NULL DEFAULT 0,
                    background_ref TEXT,
                    created_at REAL NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(focus_sessions)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE focus_sessions ADD COLUMN {name} {decl}")
                logger.info("FocusSessionStore migration: added column %s", name)

            add_col("notes", "TEXT NOT NULL DEFAULT '[]'")
            add_col("pomodoro_count", "INTEGER NOT NULL DEFAULT 0")
            add_col("background_ref", "TEXT")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_focus_sessions_user "
                "ON focus_sessions(user_id, created_at)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _notes_to_str(notes: list[SessionNote] | None) -> str:
        try:
            return json.dumps([n.to_dict() for n in notes or []], ensure_ascii=False)
        except Exception:
            logger.exception("Failed to JSON-encode notes; storing [].")
            return "[]"

    @staticmethod
    def _str_to_notes(s: str | None) -> list[SessionNote]:
        if not s:
            return []
        try:
            val = json.loads(s)
        except Exception:
            return []
        return [SessionNote.from_raw(v) for v in val] if isinstance(val, list) else []

    def _row_to_record(self, row: sqlite3.Row) -> FocusSessionRecord:
        return FocusSessionRecord(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            task_id=row["task_id"],
            start_time=float(row["start_time"]),
            end_time=float(row["end_time"]) if row["end_time"] is not None else None,
            duration_minutes=int(row["duration"] or 0),
            intention=row["intention"],
            notes=self._str_to_notes(row["notes"]),
            pomodoro_count=int(row["pomodoro_count"] or 0),
            background_ref=row["background_ref"],
            created_at=float(row["created_at"]),
        )

    # ---- public API ----

    def count_sessions(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM focus_sessions").fetchone()
            return int(n)
        finally:
            conn.close()

    def create_session(
        self,
        *,
        user_id: str,
        task_id: str | None = None,
        intention: str | None = None,
        background_ref: str | None = None,
        now_ts: float | None = None,
    ) -> str:
        if not user_id or not user_id.strip():
            raise ValueError("User ID is required to create focus session")

        now = time.time() if now_ts is None else float(now_ts)
        session_id = uuid.uuid4().hex

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO focus_sessions(
                    id, user_id, task_id, start_time, end_time, duration,
                    intention, notes, pomodoro_count, background_ref, created_at
                )
                VALUES (?, ?, ?, ?, NULL, 0, ?, '[]', 0, ?, ?)
                """,
                (session_id, user_id.strip(), task_id, now, intention, background_ref, now),
            )
            conn.commit()
            logger.debug("Focus session created id=%s user=%s task=%s", session_id, user_id, task_id)
            return session_id
        finally:
            conn.close()

    def end_session(
        self,
        session_id: str,
        *,
        duration_minutes: int,
        notes: list[SessionNote] | None = None,
        pomodoro_count: int = 0,
        now_ts: float | None = None,
    ) -> None:
        if not session_id:
            raise ValueError("Session ID is required to end focus session")

        now = time.time() if now_ts is None else float(now_ts)
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE focus_sessions
                SET end_time = ?, duration = ?, notes = ?, pomodoro_count = ?
                WHERE id = ?
                """,
                (now, int(duration_minutes), self._notes_to_str(notes), int(pomodoro_count), session_id),
            )
            conn.commit()
            if cur.rowcount != 1:
                raise KeyError(f"Focus session not found: {session_id}")
        finally:
            conn.close()

    def get_session(self, session_id: str) -> FocusSessionRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM focus_sessions WHERE id = ?", (session_id,)).fetchone()
            return self._row_to_record(row) if row else None
        finally:
            conn.close()

    def list_sessions(self, user_id: str, limit: int = 20) -> list[FocusSessionRecord]:
        """Most recent sessions first."""
        if not user_id:
            return []
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM focus_sessions
                WHERE user_id = ?
                ORDER BY created_at DESC
                    LIMIT ?
                """,
                (user_id, int(limit)),
            ).fetchall()
            return [self._row_to_record(r) for r in rows]
        finally:
            conn.close()
