# src/tasky_focus/focus/bindings.py

from __future__ import annotations

from typing import TYPE_CHECKING

from ..shortcuts.keys import combo
from ..shortcuts.registry import PlatformKeys, ShortcutBinding
from .screens import ScreenState

if TYPE_CHECKING:
    from .controller import FocusSessionController

# Lock toggle and the shortcuts panel outrank everything so they stay reachable
# while the lock vetoes exits.
PRIORITY_SHOW_SHORTCUTS = 95
PRIORITY_FOCUS_LOCK = 90
PRIORITY_COMPLETE = 85
PRIORITY_NAVIGATION = 80
PRIORITY_QUICK_NOTE = 75
PRIORITY_POMODORO = 75
PRIORITY_EXIT = 70


def _mod(key: str) -> PlatformKeys:
    """Cmd+<key> on mac, Ctrl+<key> elsewhere."""
    return PlatformKeys(mac=(combo("meta", key),), windows=(combo("ctrl", key),))


def global_bindings(ctl: FocusSessionController) -> list[ShortcutBinding]:
    """Bindings that stay live on every screen, including dialogs and transitions."""
    return [
        ShortcutBinding(
            id="quick-note",
            description="Quick Note",
            category="general",
            keys=PlatformKeys(
                mac=(combo("meta", "ctrl", "n"),),
                windows=(combo("ctrl", "alt", "n"),),
            ),
            action=ctl.open_quick_note,
            priority=PRIORITY_QUICK_NOTE,
            allow_in_modal=True,
        ),
        ShortcutBinding(
            id="toggle-focus-lock",
            description="Toggle Focus Lock",
            category="focus",
            keys=_mod("l"),
            action=ctl.toggle_lock,
            priority=PRIORITY_FOCUS_LOCK,
            allow_in_modal=True,
        ),
        ShortcutBinding(
            id="show-shortcuts",
            description="Show/Hide Shortcuts Panel",
            category="general",
            keys=_mod("/"),
            action=ctl.toggle_shortcuts_panel,
            priority=PRIORITY_SHOW_SHORTCUTS,
            allow_in_modal=True,
        ),
    ]


def _active_bindings(ctl: FocusSessionController) -> list[ShortcutBinding]:
    return [
        ShortcutBinding(
            id="exit-focus",
            description="Exit Focus Mode",
            category="navigation",
            keys=PlatformKeys(
                mac=(combo("escape"), combo("meta", "escape")),
                windows=(combo("escape"), combo("ctrl", "escape")),
            ),
            action=ctl.request_exit,
            priority=PRIORITY_EXIT,
        ),
        ShortcutBinding(
            id="toggle-pomodoro",
            description="Pomodoro Play/Pause",
            category="focus",
            keys=PlatformKeys.same(combo("p")),
            action=ctl.toggle_pomodoro,
            priority=PRIORITY_POMODORO,
        ),
        ShortcutBinding(
            id="next-task",
            description="Navigate to Next Task",
            category="focus",
            keys=PlatformKeys.same(combo("arrowright")),
            action=ctl.next_task,
            priority=PRIORITY_NAVIGATION,
        ),
        ShortcutBinding(
            id="previous-task",
            description="Navigate to Previous Task",
            category="focus",
            keys=PlatformKeys.same(combo("arrowleft")),
            action=ctl.previous_task,
            priority=PRIORITY_NAVIGATION,
        ),
        ShortcutBinding(
            id="snooze-task",
            description="Snooze Task",
            category="tasks",
            keys=_mod("s"),
            action=ctl.snooze,
            priority=PRIORITY_NAVIGATION,
        ),
        ShortcutBinding(
            id="postpone-task",
            description="Postpone Task to Tomorrow",
            category="tasks",
            keys=PlatformKeys(
                mac=(combo("meta", "shift", "arrowright"),),
                windows=(combo("ctrl", "shift", "arrowright"),),
            ),
            action=ctl.postpone,
            priority=PRIORITY_NAVIGATION,
        ),
        ShortcutBinding(
            id="complete-task",
            description="Complete Current Task",
            category="tasks",
            keys=_mod("enter"),
            action=ctl.complete,
            priority=PRIORITY_COMPLETE,
        ),
    ]


def _end_binding(ctl: FocusSessionController, *keys: str) -> ShortcutBinding:
    return ShortcutBinding(
        id="end-session",
        description="End Session",
        category="navigation",
        keys=PlatformKeys.same(*(combo(k) for k in keys)),
        action=ctl.end_session,
        priority=PRIORITY_EXIT,
    )


def build_focus_bindings(ctl: FocusSessionController) -> list[ShortcutBinding]:
    """
    Shortcut set for the controller's current screen.

    The set is rebuilt on every screen change and when the shortcuts panel
    opens or closes; the dispatcher replaces its bindings wholesale.
    """
    screen = ctl.screen
    if ctl.closed:
        return []

    out = global_bindings(ctl)
    if ctl.shortcuts_panel_open or screen == ScreenState.TRANSITION:
        return out

    if screen == ScreenState.WELCOME:
        out.append(
            ShortcutBinding(
                id="start-session",
                description="Start Focus Session",
                category="navigation",
                keys=PlatformKeys.same(combo("enter")),
                action=ctl.start,
                priority=PRIORITY_NAVIGATION,
            )
        )
    elif screen == ScreenState.ACTIVE:
        out.extend(_active_bindings(ctl))
    elif screen == ScreenState.SINGLE_TASK_DONE:
        out.append(
            ShortcutBinding(
                id="continue-session",
                description="Continue with Next Task",
                category="navigation",
                keys=PlatformKeys.same(combo("enter")),
                action=ctl.continue_session,
                priority=PRIORITY_NAVIGATION,
            )
        )
        out.append(_end_binding(ctl, "escape"))
    elif screen in (
        ScreenState.ALL_DONE_WAS_LOCKED,
        ScreenState.ALL_DONE_NOT_LOCKED,
        ScreenState.EMPTY_AT_ENTRY,
    ):
        out.append(_end_binding(ctl, "escape", "enter"))
    elif screen == ScreenState.SESSION_SUMMARY:
        out.append(
            ShortcutBinding(
                id="close-summary",
                description="Return to Dashboard",
                category="navigation",
                keys=PlatformKeys.same(combo("enter"), combo("escape")),
                action=ctl.close_summary,
                priority=PRIORITY_EXIT,
            )
        )
    return out
