# src/tasky_focus/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TaskPriority(StrEnum):
    """
    Task priority as stored by the host application.

    Notes:
    - rank is the sort position inside a focus queue (lower comes first).
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except Exception:
            return cls.MEDIUM


_PRIORITY_RANK = {
    TaskPriority.HIGH: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 2,
}


def _ts_or_none(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    priority: TaskPriority
    created_at: float

    due_at: float | None = None
    completed: bool = False
    snoozed_until: float | None = None

    description: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    def is_snoozed(self, now_ts: float) -> bool:
        return self.snoozed_until is not None and self.snoozed_until > now_ts

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a Task from a JSON-ish dict (tolerant to missing/bad fields)."""
        tags_raw = data.get("tags") or []
        tags = tuple(str(t) for t in tags_raw) if isinstance(tags_raw, list | tuple) else ()
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            priority=TaskPriority.from_raw(data.get("priority")),
            created_at=_ts_or_none(data.get("created_at")) or 0.0,
            due_at=_ts_or_none(data.get("due_at")),
            completed=bool(data.get("completed", False)),
            snoozed_until=_ts_or_none(data.get("snoozed_until")),
            description=data.get("description"),
            tags=tags,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "priority": self.priority.value,
            "created_at": self.created_at,
            "due_at": self.due_at,
            "completed": self.completed,
            "snoozed_until": self.snoozed_until,
            "description": self.description,
            "tags": list(self.tags),
        }
