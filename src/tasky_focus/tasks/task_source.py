# src/tasky_focus/tasks/task_source.py

from __future__ import annotations

import contextlib
import dataclasses
import json
import logging
import os
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.ports import TaskUpdate
from .task_models import Task, TaskPriority

logger = logging.getLogger(__name__)

TaskListener = Callable[[list[Task]], None]

_MUTABLE_FIELDS = {f.name for f in dataclasses.fields(Task)} - {"id", "created_at"}


class JsonTaskSource:
    """
    Live task list owned by the console host, persisted as a JSON file.

    Plays the "surrounding application" role for the focus engine:
    - subscribers get the full list after every change (reactive input),
    - mutate() is the on_task_mutate callback handed to the engine.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._tasks: list[Task] = self._load()
        self._listeners: list[TaskListener] = []

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def subscribe(self, listener: TaskListener) -> None:
        self._listeners.append(listener)
        listener(self.tasks)

    def unsubscribe(self, listener: TaskListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    # ---- mutations ----

    def add_task(
        self,
        title: str,
        *,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        due_at: float | None = None,
    ) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("title is required")
        task = Task(
            id=uuid.uuid4().hex[:12],
            title=title,
            priority=TaskPriority.from_raw(str(priority)),
            created_at=time.time(),
            due_at=due_at,
        )
        self._tasks.append(task)
        self._changed()
        return task

    def mutate(self, task_id: str, update: TaskUpdate) -> None:
        clean: dict[str, Any] = {k: v for k, v in update.items() if k in _MUTABLE_FIELDS}
        if len(clean) != len(update):
            logger.warning("Ignoring unknown task fields: %s", sorted(set(update) - set(clean)))

        for idx, t in enumerate(self._tasks):
            if t.id == task_id:
                self._tasks[idx] = dataclasses.replace(t, **clean)
                logger.info("Task %s updated: %s", task_id, clean)
                self._changed()
                return
        raise KeyError(f"Unknown task: {task_id}")

    __call__ = mutate

    def _changed(self) -> None:
        self.save()
        snapshot = self.tasks
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Task listener failed")

    # ---- persistence ----

    def _load(self) -> list[Task]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to load tasks from %s", self.path)
            return []

        items = data.get("tasks") if isinstance(data, dict) else data
        if not isinstance(items, list):
            return []

        out: list[Task] = []
        for raw in items:
            if not isinstance(raw, dict) or "id" not in raw:
                continue
            try:
                out.append(Task.from_dict(raw))
            except Exception:
                logger.warning("Skipping malformed task entry: %r", raw)
        logger.info("Loaded %d tasks from %s", len(out), self.path)
        return out

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            payload = {"tasks": [t.to_dict() for t in self._tasks]}
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self.path)
            with contextlib.suppress(Exception):
                os.chmod(self.path, 0o600)
        except Exception:
            logger.exception("Failed to save tasks to %s", self.path)
