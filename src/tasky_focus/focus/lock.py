# src/tasky_focus/focus/lock.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.ports import Notice, NoticeLevel, Notifier

logger = logging.getLogger(__name__)

LockListener = Callable[[bool], None]


class FocusLockGuard:
    """
    Focus Lock: a single boolean that vetoes exit-class transitions.

    The guard only answers is_exit_allowed(); callers decide what an exit is.
    Toggling the guard is never vetoed.
    """

    def __init__(
        self,
        *,
        notifier: Notifier | None = None,
        on_change: LockListener | None = None,
    ) -> None:
        self._locked = False
        self._notifier = notifier
        self.on_change = on_change

    @property
    def locked(self) -> bool:
        return self._locked

    def is_exit_allowed(self) -> bool:
        return not self._locked

    def enable(self) -> None:
        if self._locked:
            return
        self._locked = True
        logger.info("Focus lock enabled")
        self._notify(
            NoticeLevel.SUCCESS,
            "Focus Lock enabled",
            "All exit actions blocked. Task shortcuts remain active. Use Cmd/Ctrl + L to disable.",
        )
        self._fire()

    def disable(self, *, reason: str = "user") -> None:
        if not self._locked:
            return
        self._locked = False
        if reason == "auto":
            logger.info("Focus lock auto-unlocked: all session tasks completed")
            self._notify(
                NoticeLevel.INFO,
                "Focus Lock auto-unlocked",
                "All session tasks are done.",
            )
        else:
            logger.info("Focus lock disabled (reason=%s)", reason)
            self._notify(NoticeLevel.INFO, "Focus Lock disabled")
        self._fire()

    def toggle(self) -> bool:
        if self._locked:
            self.disable()
        else:
            self.enable()
        return self._locked

    def _notify(self, level: NoticeLevel, title: str, description: str | None = None) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(Notice(level, title, description))
        except Exception:
            logger.exception("Notifier failed for %r", title)

    def _fire(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self._locked)
        except Exception:
            logger.exception("on_lock_changed listener failed locked=%s", self._locked)
