# src/tasky_focus/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.ports import Notice, NoticeLevel
from ..core.state import AppState
from ..focus.controller import FocusSessionController
from ..focus.screens import ScreenState
from ..shortcuts.keys import KeyEvent

logger = logging.getLogger(__name__)

Emitter = Callable[[str], None]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """Notifier that prints toast-style notices to the terminal."""

    _TAGS = {
        NoticeLevel.INFO: "INFO",
        NoticeLevel.SUCCESS: "OK",
        NoticeLevel.WARNING: "WARN",
        NoticeLevel.ERROR: "ERROR",
    }

    def __init__(self, emit: Emitter | None = None) -> None:
        self._emit = emit or _print_ts

    def notify(self, notice: Notice) -> None:
        text = f"[{self._TAGS.get(notice.level, notice.level.upper())}] {notice.title}"
        if notice.description:
            text += f": {notice.description}"
        self._emit(text)


def describe_screen(ctl: FocusSessionController) -> str:
    """One block of text per screen, printed whenever the screen changes."""
    if ctl.closed:
        return "[FOCUS] Focus Mode closed. Back to the dashboard (/tasks, /start, /history)."

    screen = ctl.screen
    done, total = ctl.progress()
    lock = " | Focus Lock ON" if ctl.locked else ""

    if screen == ScreenState.WELCOME:
        return (
            f"[FOCUS] Welcome to Focus Mode. {len(ctl.navigator)} task(s) ready.\n"
            "        enter: start  |  ctrl+l: Focus Lock  |  ctrl+/: shortcuts"
        )
    if screen == ScreenState.ACTIVE:
        task = ctl.current_task()
        if task is None:
            return f"[FOCUS] No current task.{lock}"
        pos, size = ctl.navigator.position
        return (
            f"[FOCUS] Now: {task.title} [{task.priority.value}] ({pos}/{size})\n"
            f"        {done} of {total} completed{lock}"
        )
    if screen == ScreenState.TRANSITION:
        task = ctl.current_task()
        title = task.title if task is not None else "..."
        return f"[FOCUS] Up next: {title}"
    if screen == ScreenState.SINGLE_TASK_DONE:
        return (
            f"[FOCUS] Task done! {done} of {total} completed.\n"
            "        enter: continue  |  escape: end session"
        )
    if screen == ScreenState.ALL_DONE_WAS_LOCKED:
        return (
            "[FOCUS] All tasks complete! Focus Lock was turned off automatically.\n"
            "        enter/escape: end session"
        )
    if screen == ScreenState.ALL_DONE_NOT_LOCKED:
        return "[FOCUS] All tasks complete!\n        enter/escape: end session"
    if screen == ScreenState.EMPTY_AT_ENTRY:
        return "[FOCUS] No tasks to focus on today. Add some with /add.\n        enter/escape: leave"

    summary = ctl.summary
    if summary is None:
        return "[FOCUS] Session ended."
    lines = [
        "[FOCUS] Session summary",
        f"        Tasks: {summary.completed_tasks} of {summary.total_tasks} completed",
        f"        Focus time: {summary.format_duration()}",
        f"        Pomodoros: {summary.pomodoro_count}",
    ]
    if summary.intention:
        lines.append(f"        Intention: {summary.intention}")
    if summary.auto_unlocked:
        lines.append("        Focus Lock was released when the queue emptied.")
    lines.append("        enter: close")
    return "\n".join(lines)


def _view_key(ctl: FocusSessionController | None) -> tuple[object, ...] | None:
    if ctl is None:
        return None
    task = ctl.current_task()
    # The end write can settle after the summary is shown and flip the estimate marker.
    estimated = ctl.summary.duration_estimated if ctl.summary is not None else None
    return (id(ctl), ctl.screen, ctl.closed, task.id if task is not None else None, estimated)


def _handle_key(ctl: FocusSessionController, line: str, emit: Emitter) -> None:
    if ctl.quick_note_open:
        # Text entry: only modal-safe shortcuts fire, escape cancels, anything else is the note.
        event = KeyEvent.parse(line, is_typing=True)
        if ctl.dispatcher.dispatch(event).handled:
            return
        if event.key == "escape" and not (event.meta or event.ctrl or event.shift or event.alt):
            ctl.close_quick_note()
            emit("[NOTE] Cancelled.")
            return
        ctl.close_quick_note(line)
        return

    event = KeyEvent.parse(line)
    result = ctl.dispatcher.dispatch(event)
    if not result.handled:
        emit(f"No shortcut for '{line}' on this screen. Use /keys.")
        return
    if ctl.quick_note_open:
        emit("[NOTE] Type your note and press enter (escape to cancel).")
    if result.binding_id == "show-shortcuts" and ctl.shortcuts_panel_open:
        emit("Shortcuts:\n" + "\n".join(ctl.dispatcher.help_lines()))


class ScreenPrinter:
    """Prints describe_screen() once per visible change (screen, current task, session)."""

    def __init__(self, emit: Emitter = _print_ts) -> None:
        self.emit = emit
        self._last: tuple[object, ...] | None = None

    def refresh(self, state: AppState) -> None:
        ctl = state.controller
        key = _view_key(ctl)
        if key == self._last:
            return
        self._last = key
        if ctl is not None:
            self.emit(describe_screen(ctl))


def handle_console_line(state: AppState, line: str, view: ScreenPrinter) -> bool:
    """
    Process one line of console input.

    Returns False when the user asked to quit.
    """
    emit = view.emit
    line = line.strip()
    if not line:
        return True

    if line.lower() in ("/exit", "/quit"):
        logger.info("Console exit command received.")
        return False

    if line.startswith("/"):
        try:
            reply = command_registry.handle(state, line, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."
        if reply is not None:
            emit(reply)
    else:
        ctl = state.controller
        if ctl is None or ctl.closed:
            emit("No focus session. Use /start to open Focus Mode, /help for commands.")
            return True
        _handle_key(ctl, line, emit)

    view.refresh(state)
    return True


async def _watch_screen(state: AppState, view: ScreenPrinter, interval: float) -> None:
    """Timers change screens without input (transition, auto-exit); show those too."""
    while True:
        await asyncio.sleep(interval)
        try:
            view.refresh(state)
        except Exception:
            logger.exception("Screen watcher failed")


async def run_console_loop(state: AppState, *, poll_interval: float = 0.25) -> None:
    """
    Interactive REPL on the event loop that drives the focus engine.

    input() runs in a worker thread so timers and background writes keep
    running while the prompt waits.
    """
    logger.info("Console connector started (user=%s).", state.settings.user_id)
    _print_ts("[CONSOLE] Use /help for commands, /start to open Focus Mode, /quit to exit.\n")

    view = ScreenPrinter()
    watcher = asyncio.create_task(_watch_screen(state, view, poll_interval), name="console-screen-watch")
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, ">>> ")
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not handle_console_line(state, line, view):
                break
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher

    logger.info("Console connector finished.")
