# src/tasky_focus/cli/commands.py

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..cli.bootstrap import create_focus_session
from ..core.state import AppState
from ..focus.screens import ScreenState
from ..tasks.navigator import queue_sort_key
from ..tasks.task_models import Task, TaskPriority

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /quit - Exit the app")
        lines.append("Anything else is read as a key combo, e.g. enter, escape, ctrl+l, ctrl+shift+arrowright.")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def _fmt_task(idx: int, task: Task, *, marker: str = " ") -> str:
    due = f" due {_fmt_ts(task.due_at)}" if task.due_at is not None else ""
    return f" {marker}{idx:>2}. [{task.priority.value}] {task.title}{due}"


def _session_running(state: AppState) -> bool:
    ctl = state.controller
    return ctl is not None and not ctl.closed


def _queue(state: AppState) -> list[Task]:
    """Today's focus queue: the live session view, or the same ordering over the task file."""
    ctl = state.controller
    if ctl is not None and not ctl.closed:
        return list(ctl.navigator.tasks)

    now_ts = time.time()
    pending = [t for t in state.task_source.tasks if not t.completed and not t.is_snoozed(now_ts)]
    return sorted(pending, key=queue_sort_key)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def _pomodoro_clock(ctl) -> str:
    if not (ctl.pomodoro_running or ctl.pomodoro_paused):
        return ""
    minutes, seconds = divmod(int(ctl.pomodoro_seconds_left()), 60)
    return f" ({minutes:02d}:{seconds:02d} left{', paused' if ctl.pomodoro_paused else ''})"


def cmd_status(state: AppState, args: list[str]) -> str:
    ctl = state.controller
    if ctl is None or ctl.closed:
        return f"Status:\n  No focus session. {len(_queue(state))} task(s) queued. Use /start."

    done, total = ctl.progress()
    current = ctl.current_task()
    pos, size = ctl.navigator.position
    lines = [
        "Status:",
        f"  Screen: {ctl.screen.value}",
        f"  Focus Lock: {'ON' if ctl.locked else 'OFF'}",
        f"  Progress: {done} of {total} completed",
        f"  Pomodoros: {ctl.pomodoro_count}{_pomodoro_clock(ctl)}",
    ]
    if current is not None and ctl.screen.is_working:
        lines.append(f"  Current: {current.title} ({pos}/{size})")
    if ctl.intention:
        lines.append(f"  Intention: {ctl.intention}")
    return "\n".join(lines)


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = _queue(state)
    if not tasks:
        return "No pending tasks. Add one with /add [high|medium|low] <title>."

    current = state.controller.current_task() if _session_running(state) else None
    lines = ["Focus queue:"]
    for idx, task in enumerate(tasks, start=1):
        marker = ">" if current is not None and task.id == current.id else " "
        lines.append(_fmt_task(idx, task, marker=marker))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title>               -> medium priority
    /add high <title>          -> explicit priority
    """
    if not args:
        return "Usage: /add [high|medium|low] <title>"

    priority = TaskPriority.MEDIUM
    if args[0].lower() in {p.value for p in TaskPriority}:
        priority = TaskPriority.from_raw(args[0])
        args = args[1:]

    try:
        task = state.task_source.add_task(" ".join(args), priority=priority)
    except ValueError as e:
        return f"Cannot add task: {e}"
    return f"Added task {task.id}: [{task.priority.value}] {task.title}"


def cmd_start(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /start                     -> open Focus Mode on the Welcome screen (enter to begin)
    /start 2                   -> start with the 2nd task of /tasks
    /start 2 ship the release  -> same, with an intention
    """
    if _session_running(state):
        return "A focus session is already open. Use /status."

    queue = _queue(state)
    task_id: str | None = None
    if args and args[0].isdigit():
        idx = int(args[0])
        if not 1 <= idx <= len(queue):
            return f"No task #{idx}. Use /tasks to list the queue."
        task_id = queue[idx - 1].id
        args = args[1:]
    intention = " ".join(args) or None

    ctl = create_focus_session(state)
    if emit:
        emit(f"[FOCUS] Welcome. {len(queue)} task(s) in today's queue.")
    if task_id is not None or intention is not None:
        ctl.start(task_id, intention=intention)
    return f"Focus Mode: {ctl.screen.value}"


def cmd_keys(state: AppState, args: list[str]) -> str:
    if not _session_running(state):
        return "No focus session. Shortcuts are available once /start has been used."
    lines = state.controller.dispatcher.help_lines()
    return "Shortcuts:\n" + "\n".join(lines) if lines else "No shortcuts on this screen."


def cmd_note(state: AppState, args: list[str]) -> str:
    if not _session_running(state):
        return "No focus session."
    if not args:
        return "Usage: /note <text>"
    if state.controller.add_note(" ".join(args)):
        return f"Note saved ({len(state.controller.notes)} this session)."
    return "Session already ended; note not saved."


def cmd_pomodoro(state: AppState, args: list[str]) -> str:
    """
    /pomodoro        -> start/pause the timer (Active screen only)
    /pomodoro done   -> count a finished pomodoro
    """
    if not _session_running(state):
        return "No focus session."
    ctl = state.controller
    if args and args[0].lower() == "done":
        return f"Pomodoros this session: {ctl.record_pomodoro()}"
    if ctl.screen != ScreenState.ACTIVE:
        return "The pomodoro timer is only available while working on a task."
    return "Pomodoro running." if ctl.toggle_pomodoro() else "Pomodoro paused."


def cmd_history(state: AppState, args: list[str]) -> str:
    limit = 10
    if args and args[0].isdigit():
        limit = max(1, int(args[0]))

    sessions = state.store.list_sessions(state.settings.user_id, limit=limit)
    if not sessions:
        return "No focus sessions recorded yet."

    lines = ["Recent focus sessions:"]
    for s in sessions:
        state_txt = f"{s.duration_minutes}m" if s.ended else "open"
        extra = f" \"{s.intention}\"" if s.intention else ""
        lines.append(
            f"  {_fmt_ts(s.start_time)}  {state_txt:>6}  pomodoros={s.pomodoro_count}"
            f"  notes={len(s.notes)}{extra}"
        )
    return "\n".join(lines)


registry.register("help", cmd_help, "Show this help", aliases=["h", "?"])
registry.register("status", cmd_status, "Show the focus session status")
registry.register("tasks", cmd_tasks, "List today's focus queue")
registry.register("add", cmd_add, "Add a task: /add [high|medium|low] <title>")
registry.register("start", cmd_start, "Open Focus Mode: /start [n] [intention]")
registry.register("keys", cmd_keys, "List shortcuts active on this screen")
registry.register("note", cmd_note, "Attach a note to the session: /note <text>")
registry.register("pomodoro", cmd_pomodoro, "Start/pause the pomodoro timer; /pomodoro done to count one")
registry.register("history", cmd_history, "Show recent focus sessions: /history [n]")
