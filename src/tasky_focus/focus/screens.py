# src/tasky_focus/focus/screens.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ScreenState(StrEnum):
    """Exactly one screen is active at any time."""

    WELCOME = "welcome"
    ACTIVE = "active"
    TRANSITION = "transition"
    SINGLE_TASK_DONE = "single_task_done"
    ALL_DONE_WAS_LOCKED = "all_done_was_locked"
    ALL_DONE_NOT_LOCKED = "all_done_not_locked"
    EMPTY_AT_ENTRY = "empty_at_entry"
    SESSION_SUMMARY = "session_summary"

    @property
    def is_working(self) -> bool:
        return self in (ScreenState.ACTIVE, ScreenState.TRANSITION)

    @property
    def is_all_done(self) -> bool:
        return self in (ScreenState.ALL_DONE_WAS_LOCKED, ScreenState.ALL_DONE_NOT_LOCKED)


@dataclass(slots=True)
class SessionSummary:
    """
    Final report.

    duration_estimated is True when the stored record could not confirm the
    duration (create/end failed); the value is then the client-side estimate.
    """

    completed_tasks: int
    total_tasks: int
    pomodoro_count: int
    duration_minutes: int
    duration_estimated: bool = False
    intention: str | None = None
    auto_unlocked: bool = False

    @property
    def completion_ratio(self) -> float:
        if self.total_tasks <= 0:
            return 0.0
        return self.completed_tasks / self.total_tasks

    def format_duration(self) -> str:
        hours, minutes = divmod(max(0, self.duration_minutes), 60)
        text = f"{hours}h {minutes}m" if hours else f"{minutes}m"
        return f"~{text}" if self.duration_estimated else text
