# src/tasky_focus/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the focus engine.

The engine depends on Protocols instead of concrete implementations.
This keeps the session store, the task source and the UI surface swappable
and makes testing easier.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

TaskUpdate = dict[str, Any]
# Partial update keyed by Task field names: {"completed": True}, {"due_at": 1700000000.0}.


class NoticeLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class SessionNote:
    """A quick note taken during a session, tied to the task that was on screen."""

    text: str
    task_id: str | None = None
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "task_id": self.task_id, "created_at": self.created_at}

    @classmethod
    def from_raw(cls, raw: Any) -> SessionNote:
        """Accept a stored dict or a bare string (rows written before task ids were kept)."""
        if isinstance(raw, dict):
            task_id = raw.get("task_id")
            return cls(
                text=str(raw.get("text") or ""),
                task_id=str(task_id) if task_id is not None else None,
                created_at=float(raw.get("created_at") or 0.0),
            )
        return cls(text=str(raw))


@dataclass(slots=True, frozen=True)
class Notice:
    """Toast-equivalent user notification."""

    level: NoticeLevel
    title: str
    description: str | None = None


class Notifier(Protocol):
    """UI-side port: how the engine tells the user what happened."""

    def notify(self, notice: Notice) -> None: ...


class TaskMutator(Protocol):
    """
    Host-side port for task mutations (complete/postpone/snooze).

    The engine never writes to the task store directly.
    """

    def __call__(self, task_id: str, update: TaskUpdate) -> None: ...


class SessionGateway(Protocol):
    """
    Persistence port for focus session records.

    Every write is followed by verify(); a False result is a retryable failure.
    """

    async def create_session(
            self,
            user_id: str,
            task_id: str | None = None,
            intention: str | None = None,
            background: str | None = None,
    ) -> str: ...

    async def end_session(
            self,
            session_id: str,
            duration_minutes: int,
            notes: list[SessionNote],
            pomodoro_count: int,
    ) -> None: ...

    async def verify(self, session_id: str) -> bool: ...
