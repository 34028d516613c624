# src/tasky_focus/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..focus.controller import FocusSessionController
from ..persistence.gateway import LocalSessionGateway
from ..persistence.session_store import FocusSessionStore
from ..tasks.task_source import JsonTaskSource
from .ports import Notifier


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    store: FocusSessionStore
    gateway: LocalSessionGateway
    task_source: JsonTaskSource
    notifier: Notifier

    # Latest focus session; closed (or None) while the user is on the "dashboard".
    controller: FocusSessionController | None = None
    # Last chrome-visible lock state (for a nav bar outside the engine).
    nav_locked: bool = False
