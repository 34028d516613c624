# src/tasky_focus/tasks/navigator.py

from __future__ import annotations

"""
Task queue navigator.

Holds the live, filtered and sorted view of the host's task list plus a cursor:
- completed tasks, still-snoozed tasks and tasks hidden during this session are dropped,
- the rest is ordered by priority, due date (missing last), creation time, id,
- the cursor follows the selected task id across re-sorts and clamps when it disappears.
"""

import logging
import time
from collections.abc import Callable, Iterable
from enum import StrEnum

from .task_models import Task

logger = logging.getLogger(__name__)


class NavOutcome(StrEnum):
    MOVED = "moved"
    AT_START = "at_start"
    AT_END = "at_end"
    EMPTY = "empty"


def queue_sort_key(task: Task) -> tuple[int, int, float, float, str]:
    """Strict total order for the focus queue."""
    no_due = 1 if task.due_at is None else 0
    return (task.priority.rank, no_due, task.due_at or 0.0, task.created_at, task.id)


class TaskQueueNavigator:
    """
    Cursor over the live task list.

    Listeners:
    - on_move(task): fired after advance/retreat actually moved (transition hook)
    - on_empty(): fired when a recompute leaves the list empty
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        on_move: Callable[[Task], None] | None = None,
        on_empty: Callable[[], None] | None = None,
    ) -> None:
        self._clock = clock
        self._source: list[Task] = []
        self._tasks: list[Task] = []
        # task id -> expiry (None: hidden for the rest of the session)
        self._excluded: dict[str, float | None] = {}
        self._cursor: int | None = None
        self._selected_id: str | None = None
        self.on_move = on_move
        self.on_empty = on_empty

    # ---- views ----

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def cursor(self) -> int | None:
        return self._cursor

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def task_ids(self) -> list[str]:
        return [t.id for t in self._tasks]

    def current_task(self) -> Task | None:
        if self._cursor is None:
            return None
        return self._tasks[self._cursor]

    @property
    def position(self) -> tuple[int, int]:
        """(1-based index, length); (0, 0) when empty."""
        if self._cursor is None:
            return (0, 0)
        return (self._cursor + 1, len(self._tasks))

    # ---- recompute ----

    def update(self, live_tasks: Iterable[Task]) -> None:
        """Recompute the filtered/sorted view after any change of the live list."""
        self._source = list(live_tasks)

        # Exclusions are only needed until the host reflects the change.
        live_ids = {t.id for t in self._source if not t.completed}
        now_ts = self._clock()
        self._excluded = {
            tid: until
            for tid, until in self._excluded.items()
            if tid in live_ids and self._is_excluded(tid, now_ts)
        }

        self._recompute()

    def exclude(self, task_id: str, *, until: float | None = None) -> None:
        """
        Hide a task optimistically (completion/postpone/snooze).

        With until set (snooze) the task comes back once the clock passes it;
        otherwise it stays hidden for the rest of the session.
        """
        self._excluded[task_id] = until
        self._recompute()

    def _is_excluded(self, task_id: str, now_ts: float) -> bool:
        if task_id not in self._excluded:
            return False
        until = self._excluded[task_id]
        return until is None or until > now_ts

    def _recompute(self) -> None:
        now_ts = self._clock()
        was_non_empty = bool(self._tasks)
        old_index = self._cursor

        visible = [
            t
            for t in self._source
            if not t.completed and not t.is_snoozed(now_ts) and not self._is_excluded(t.id, now_ts)
        ]
        visible.sort(key=queue_sort_key)
        self._tasks = visible

        if not visible:
            self._cursor = None
            self._selected_id = None
            if was_non_empty:
                logger.info("Task queue is empty")
                if self.on_empty is not None:
                    self.on_empty()
            return

        ids = [t.id for t in visible]
        if self._selected_id in ids:
            self._cursor = ids.index(self._selected_id)
        elif old_index is None:
            self._cursor = 0
        else:
            self._cursor = min(old_index, len(visible) - 1)
        self._selected_id = visible[self._cursor].id

    # ---- movement ----

    def select(self, task_id: str) -> bool:
        for idx, task in enumerate(self._tasks):
            if task.id == task_id:
                self._cursor = idx
                self._selected_id = task_id
                return True
        return False

    def advance(self) -> NavOutcome:
        if self._cursor is None:
            return NavOutcome.EMPTY
        if self._cursor >= len(self._tasks) - 1:
            return NavOutcome.AT_END
        return self._move_to(self._cursor + 1)

    def retreat(self) -> NavOutcome:
        if self._cursor is None:
            return NavOutcome.EMPTY
        if self._cursor == 0:
            return NavOutcome.AT_START
        return self._move_to(self._cursor - 1)

    def _move_to(self, index: int) -> NavOutcome:
        self._cursor = index
        task = self._tasks[index]
        self._selected_id = task.id
        if self.on_move is not None:
            self.on_move(task)
        return NavOutcome.MOVED
