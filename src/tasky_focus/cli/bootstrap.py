# src/tasky_focus/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/gateway/task source),
- builds a fresh FocusSessionController for every focus session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..core.ports import Notifier
from ..core.state import AppState
from ..focus.controller import FocusSessionController
from ..persistence.gateway import LocalSessionGateway
from ..persistence.session_store import FocusSessionStore
from ..persistence.writer import SessionWriter
from ..shortcuts.keys import Platform
from ..shortcuts.registry import ShortcutDispatcher
from ..tasks.task_source import JsonTaskSource

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.sessions_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, notifier: Notifier) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = FocusSessionStore(settings.sessions_db_path)
    return AppState(
        settings=settings,
        store=store,
        gateway=LocalSessionGateway(store),
        task_source=JsonTaskSource(settings.tasks_path),
        notifier=notifier,
    )


def create_focus_session(
    state: AppState,
    *,
    on_exit_requested: Callable[[], None] | None = None,
) -> FocusSessionController:
    """
    Build a controller wired to the app's task source and gateway.

    Any previous controller is detached from the task source first.
    """
    settings = state.settings
    release_focus_session(state)

    writer = SessionWriter(
        state.gateway,
        timeout_seconds=settings.gateway_timeout_seconds,
        verify_attempts=settings.verify_attempts,
        retry_delay_seconds=settings.retry_delay_seconds,
    )
    dispatcher = ShortcutDispatcher(
        platform=Platform.from_raw(settings.platform),
        notifier=state.notifier,
    )

    def _lock_changed(locked: bool) -> None:
        state.nav_locked = locked

    def _exit_requested() -> None:
        release_focus_session(state)
        if on_exit_requested is not None:
            on_exit_requested()

    controller = FocusSessionController(
        writer=writer,
        on_task_mutate=state.task_source.mutate,
        notifier=state.notifier,
        dispatcher=dispatcher,
        config=settings.engine_config(),
        on_exit_requested=_exit_requested,
        on_lock_changed=_lock_changed,
    )
    state.task_source.subscribe(controller.update_tasks)
    state.controller = controller
    logger.info("Focus session controller created platform=%s", dispatcher.platform.value)
    return controller


def release_focus_session(state: AppState) -> None:
    """
    Detach the current controller (if any) from live task updates.

    The controller itself stays on the state so shutdown can still wait for
    its pending session writes.
    """
    ctl = state.controller
    if ctl is None:
        return
    state.task_source.unsubscribe(ctl.update_tasks)
    state.nav_locked = False
