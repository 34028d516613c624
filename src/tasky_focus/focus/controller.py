# src/tasky_focus/focus/controller.py

"""
Focus session lifecycle controller.

One state machine over ScreenState:

    Welcome -> Active <-> Transition
    Active -> SingleTaskDone | AllDoneWasLocked | AllDoneNotLocked
    Welcome -> EmptyAtEntry
    any -> SessionSummary -> (closed, host navigates away)

The controller is driven from a single asyncio event loop. UI state changes are
synchronous; gateway writes run as background tasks and report back through
notices, so the user is never blocked on the network.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass
from typing import Any

from ..core.ports import Notice, NoticeLevel, Notifier, SessionNote, TaskMutator, TaskUpdate
from ..persistence.writer import SessionWriter
from ..shortcuts.registry import ShortcutDispatcher
from ..tasks.navigator import NavOutcome, TaskQueueNavigator
from ..tasks.task_models import Task
from .bindings import build_focus_bindings
from .lock import FocusLockGuard
from .screens import ScreenState, SessionSummary
from .timers import CancellableTimer

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(slots=True, frozen=True)
class EngineConfig:
    user_id: str = "local"
    transition_seconds: float = 3.0
    # 0 disables the "press exit again to confirm" step.
    exit_confirm_seconds: float = 0.0
    # 0 disables the countdown on AllDoneNotLocked.
    auto_exit_seconds: float = 0.0
    snooze_hours: float = 2.0
    postpone_days: int = 1
    pomodoro_minutes: float = 25.0


class FocusSessionController:
    def __init__(
        self,
        *,
        writer: SessionWriter,
        on_task_mutate: TaskMutator,
        notifier: Notifier | None = None,
        dispatcher: ShortcutDispatcher | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], float] = time.time,
        on_exit_requested: Callable[[], None] | None = None,
        on_lock_changed: Callable[[bool], None] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._writer = writer
        self._on_task_mutate = on_task_mutate
        self._notifier = notifier
        self._clock = clock
        self.on_exit_requested = on_exit_requested
        self.on_lock_changed = on_lock_changed

        self.navigator = TaskQueueNavigator(clock=clock, on_move=self._on_navigator_move, on_empty=self._on_queue_empty)
        self.guard = FocusLockGuard(notifier=notifier, on_change=self._on_guard_change)
        self.dispatcher = dispatcher or ShortcutDispatcher(notifier=notifier)

        self._screen = ScreenState.WELCOME
        self._closed = False

        # Session data
        self._snapshot: tuple[str, ...] = ()
        self._completed: list[str] = []
        self._start_ts: float | None = None
        self.intention: str | None = None
        self.background: str | None = None
        self.pomodoro_count = 0
        self.pomodoro_running = False
        self.notes: list[SessionNote] = []
        self.session_id: str | None = None
        self.summary: SessionSummary | None = None
        self._auto_unlocked = False

        # Background writes
        self._create_task: asyncio.Task[None] | None = None
        self._create_failed = False
        self._ended = False
        self._background: set[asyncio.Task[Any]] = set()

        # UI flags that coexist with any screen
        self._exit_intent = False
        self._completing = False
        self.shortcuts_panel_open = False
        self.quick_note_open = False

        self._transition_timer = CancellableTimer("transition")
        self._exit_intent_timer = CancellableTimer("exit-intent")
        self._auto_exit_timer = CancellableTimer("auto-exit")
        self._pomodoro_timer = CancellableTimer("pomodoro")
        self._pomodoro_left: float | None = None
        self._pomodoro_resumed_at: float | None = None

        self._refresh_bindings()

    # ---- read-only views ----

    @property
    def screen(self) -> ScreenState:
        return self._screen

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def locked(self) -> bool:
        return self.guard.locked

    @property
    def snapshot(self) -> tuple[str, ...]:
        return self._snapshot

    @property
    def completed_task_ids(self) -> tuple[str, ...]:
        return tuple(self._completed)

    @property
    def start_time(self) -> float | None:
        return self._start_ts

    @property
    def exit_intent(self) -> bool:
        return self._exit_intent

    def current_task(self) -> Task | None:
        return self.navigator.current_task()

    def progress(self) -> tuple[int, int]:
        """(completed, total) for "N of M completed"."""
        return (len(self._completed), len(self._snapshot))

    # ---- host input ----

    def update_tasks(self, live_tasks: Iterable[Task]) -> None:
        """The host's live task list changed."""
        self.navigator.update(live_tasks)

    # ---- Welcome ----

    def start(
        self,
        task_id: str | None = None,
        *,
        intention: str | None = None,
        background: str | None = None,
    ) -> bool:
        """Leave Welcome: snapshot the queue and open a session record."""
        if self._screen != ScreenState.WELCOME:
            logger.debug("start ignored on screen=%s", self._screen)
            return False

        self.intention = (intention or "").strip() or None
        self.background = background

        if len(self.navigator) == 0:
            logger.info("No eligible tasks at session start")
            self._set_screen(ScreenState.EMPTY_AT_ENTRY)
            return True

        if task_id is not None and not self.navigator.select(task_id):
            logger.warning("Selected task %s is not in the focus queue; using the queue head", task_id)

        self._snapshot = tuple(self.navigator.task_ids())
        self._start_ts = self._clock()
        current = self.navigator.current_task()

        self._create_task = self._spawn(
            self._persist_create(current.id if current else None),
            name="focus-session-create",
        )
        logger.info("Focus session started tasks=%d intention=%r", len(self._snapshot), self.intention)
        self._set_screen(ScreenState.ACTIVE)
        return True

    # ---- Active ----

    def complete(self, task_id: str | None = None) -> bool:
        """Mark the current (or given) task done and pick the next screen."""
        if self._screen != ScreenState.ACTIVE:
            logger.debug("complete ignored on screen=%s", self._screen)
            return False

        task = self.navigator.current_task()
        target_id = task_id or (task.id if task else None)
        if target_id is None:
            return False

        self._completing = True
        try:
            self._mutate(target_id, {"completed": True})
            if target_id in self._snapshot and target_id not in self._completed:
                self._completed.append(target_id)
            self.navigator.exclude(target_id)
        finally:
            self._completing = False

        done, total = self.progress()
        self._notify(NoticeLevel.SUCCESS, "Task completed!", f"{done} of {total} completed")

        if done == total or len(self.navigator) == 0:
            self._finish_queue()
        else:
            self._set_screen(ScreenState.SINGLE_TASK_DONE)
        return True

    def next_task(self) -> NavOutcome | None:
        if self._screen != ScreenState.ACTIVE:
            return None
        outcome = self.navigator.advance()
        if outcome == NavOutcome.AT_END:
            self._notify(NoticeLevel.INFO, "This is the last task")
        return outcome

    def previous_task(self) -> NavOutcome | None:
        if self._screen != ScreenState.ACTIVE:
            return None
        outcome = self.navigator.retreat()
        if outcome == NavOutcome.AT_START:
            self._notify(NoticeLevel.INFO, "This is the first task")
        return outcome

    def postpone(self) -> bool:
        """Move the current task to tomorrow; it leaves today's queue."""
        task = self._current_for_action("postpone")
        if task is None:
            return False
        due_at = self._clock() + self.config.postpone_days * SECONDS_PER_DAY
        self._notify(NoticeLevel.SUCCESS, "Task moved to tomorrow")
        self._drop_and_transition(task.id, {"due_at": due_at})
        return True

    def snooze(self, hours: float | None = None) -> bool:
        task = self._current_for_action("snooze")
        if task is None:
            return False
        hours = self.config.snooze_hours if hours is None else float(hours)
        self._notify(NoticeLevel.SUCCESS, f"Task snoozed for {hours:g} hours")
        until = self._clock() + hours * 3600
        self._drop_and_transition(task.id, {"snoozed_until": until}, until=until)
        return True

    def _current_for_action(self, action: str) -> Task | None:
        if self._screen != ScreenState.ACTIVE:
            logger.debug("%s ignored on screen=%s", action, self._screen)
            return None
        return self.navigator.current_task()

    def _drop_and_transition(self, task_id: str, update: TaskUpdate, *, until: float | None = None) -> None:
        # The host may push the updated list back synchronously; the empty
        # queue is handled below, not by the navigator callback.
        self._completing = True
        try:
            self._mutate(task_id, update)
            self.navigator.exclude(task_id, until=until)
        finally:
            self._completing = False

        if len(self.navigator) == 0:
            self._finish_queue()
        else:
            self._begin_transition()

    # ---- Transition ----

    def _on_navigator_move(self, task: Task) -> None:
        if self._screen == ScreenState.ACTIVE:
            self._begin_transition()

    def _begin_transition(self) -> None:
        self._set_screen(ScreenState.TRANSITION)
        self._transition_timer.start(self.config.transition_seconds, self._end_transition)

    def _end_transition(self) -> None:
        if self._screen == ScreenState.TRANSITION:
            self._set_screen(ScreenState.ACTIVE)

    def dismiss_transition(self) -> bool:
        """Skip the interstitial; the pending timer is cancelled."""
        if self._screen != ScreenState.TRANSITION:
            return False
        self._set_screen(ScreenState.ACTIVE)
        return True

    # ---- SingleTaskDone ----

    def continue_session(self) -> bool:
        if self._screen != ScreenState.SINGLE_TASK_DONE:
            return False
        # The completed task already left the queue; the cursor sits on its successor.
        self._set_screen(ScreenState.ACTIVE)
        return True

    # ---- queue drained ----

    def _on_queue_empty(self) -> None:
        if self._completing or not self._screen.is_working:
            return
        logger.info("Focus queue drained by the host")
        self._finish_queue()

    def _finish_queue(self) -> None:
        if self._screen.is_all_done or self._ended:
            return
        # The guard must be off before any all-done screen becomes visible.
        if self.guard.locked:
            self.guard.disable(reason="auto")
            self._auto_unlocked = True
            self._set_screen(ScreenState.ALL_DONE_WAS_LOCKED)
            return

        self._set_screen(ScreenState.ALL_DONE_NOT_LOCKED)
        if self.config.auto_exit_seconds > 0:
            self._auto_exit_timer.start(self.config.auto_exit_seconds, self._auto_exit)

    def _auto_exit(self) -> None:
        if self._screen == ScreenState.ALL_DONE_NOT_LOCKED:
            logger.info("Auto-exit after all tasks done")
            self.end_session()

    # ---- exit / end ----

    def request_exit(self) -> bool:
        """Exit from the working screens; vetoed while the focus lock is on."""
        if not self._screen.is_working:
            return self.end_session()

        if not self.guard.is_exit_allowed():
            logger.info("Exit vetoed by focus lock")
            self._notify(
                NoticeLevel.ERROR,
                "Focus Lock is active",
                "Please disable Focus Lock before exiting.",
            )
            return False

        if self.config.exit_confirm_seconds > 0 and not self._exit_intent:
            self._exit_intent = True
            self._exit_intent_timer.start(self.config.exit_confirm_seconds, self._clear_exit_intent)
            self._notify(NoticeLevel.INFO, "Press exit again to leave Focus Mode")
            return False

        self._end()
        return True

    def _clear_exit_intent(self) -> None:
        self._exit_intent = False

    def end_session(self) -> bool:
        """The "end" transition; a second call is a no-op."""
        if self._ended or self._closed:
            return False

        if self._screen.is_working:
            return self.request_exit()

        if self._screen == ScreenState.SINGLE_TASK_DONE and self.guard.locked:
            self.guard.disable(reason="session end")

        self._end()
        return True

    def _end(self) -> None:
        if self._ended:
            return
        self._ended = True

        duration = 0
        if self._start_ts is not None:
            duration = max(0, int((self._clock() - self._start_ts) // 60))

        self.summary = SessionSummary(
            completed_tasks=len(self._completed),
            total_tasks=len(self._snapshot),
            pomodoro_count=self.pomodoro_count,
            duration_minutes=duration,
            intention=self.intention,
            auto_unlocked=self._auto_unlocked,
        )

        if self._create_task is not None:
            if self._create_failed:
                self.summary.duration_estimated = True
            else:
                self._spawn(self._persist_end(self.summary, list(self.notes)), name="focus-session-end")

        logger.info(
            "Focus session ended completed=%d/%d duration=%dm",
            self.summary.completed_tasks,
            self.summary.total_tasks,
            duration,
        )
        self._set_screen(ScreenState.SESSION_SUMMARY)

    def close_summary(self) -> bool:
        """Leave the terminal screen and hand control back to the host."""
        if self._screen != ScreenState.SESSION_SUMMARY or self._closed:
            return False
        self._closed = True
        self._cancel_timers()
        self.dispatcher.clear()
        self.dispatcher.set_modal_open(False)
        logger.info("Focus engine closed")
        if self.on_exit_requested is not None:
            try:
                self.on_exit_requested()
            except Exception:
                logger.exception("on_exit_requested listener failed")
        return True

    # ---- lock ----

    def toggle_lock(self) -> bool:
        """Flip the focus lock; never vetoed. Returns the new state."""
        if self._closed:
            return self.guard.locked
        self._exit_intent = False
        self._exit_intent_timer.cancel()
        return self.guard.toggle()

    def _on_guard_change(self, locked: bool) -> None:
        if self.on_lock_changed is None:
            return
        try:
            self.on_lock_changed(locked)
        except Exception:
            logger.exception("on_lock_changed listener failed")

    # ---- session extras ----

    def toggle_pomodoro(self) -> bool:
        """Start or pause the focus countdown; a paused countdown keeps its remaining time."""
        if self._screen != ScreenState.ACTIVE:
            return self.pomodoro_running
        if self.pomodoro_running:
            self._pause_pomodoro()
            self._notify(NoticeLevel.INFO, "Pomodoro paused")
        else:
            self._run_pomodoro()
            self._notify(NoticeLevel.INFO, "Pomodoro started")
        return self.pomodoro_running

    @property
    def pomodoro_paused(self) -> bool:
        return not self.pomodoro_running and self._pomodoro_left is not None

    def pomodoro_seconds_left(self) -> float:
        if self._pomodoro_left is None:
            return self.config.pomodoro_minutes * 60
        if self.pomodoro_running and self._pomodoro_resumed_at is not None:
            return max(0.0, self._pomodoro_left - (self._clock() - self._pomodoro_resumed_at))
        return self._pomodoro_left

    def _run_pomodoro(self) -> None:
        left = self.pomodoro_seconds_left()
        self._pomodoro_left = left
        self._pomodoro_resumed_at = self._clock()
        self.pomodoro_running = True
        self._pomodoro_timer.start(left, self._pomodoro_finished)

    def _pause_pomodoro(self) -> None:
        self._pomodoro_left = self.pomodoro_seconds_left()
        self._pomodoro_timer.cancel()
        self._pomodoro_resumed_at = None
        self.pomodoro_running = False

    def _stop_pomodoro(self) -> None:
        self._pomodoro_timer.cancel()
        self._pomodoro_left = None
        self._pomodoro_resumed_at = None
        self.pomodoro_running = False

    def _pomodoro_finished(self) -> None:
        self._stop_pomodoro()
        count = self.record_pomodoro()
        self._notify(NoticeLevel.SUCCESS, "Pomodoro complete!", f"{count} this session. Take a short break.")

    def record_pomodoro(self) -> int:
        if self._ended:
            return self.pomodoro_count
        self.pomodoro_count += 1
        logger.info("Pomodoro completed count=%d", self.pomodoro_count)
        return self.pomodoro_count

    def add_note(self, text: str) -> bool:
        text = (text or "").strip()
        if not text or self._ended:
            return False
        task = self.navigator.current_task() if self._screen.is_working else None
        self.notes.append(SessionNote(text=text, task_id=task.id if task else None, created_at=self._clock()))
        return True

    def open_quick_note(self) -> bool:
        if self._closed or self.quick_note_open:
            return False
        self.quick_note_open = True
        self.dispatcher.set_modal_open(True)
        return True

    def close_quick_note(self, text: str | None = None) -> bool:
        if not self.quick_note_open:
            return False
        self.quick_note_open = False
        self.dispatcher.set_modal_open(False)
        if text and self.add_note(text):
            self._notify(NoticeLevel.SUCCESS, "Note saved")
        return True

    def toggle_shortcuts_panel(self) -> bool:
        if self._closed:
            return False
        self.shortcuts_panel_open = not self.shortcuts_panel_open
        self._refresh_bindings()
        return self.shortcuts_panel_open

    # ---- background persistence ----

    async def _persist_create(self, task_id: str | None) -> None:
        outcome = await self._writer.create(
            user_id=self.config.user_id,
            task_id=task_id,
            intention=self.intention,
            background=self.background,
        )
        if not outcome.ok:
            self._create_failed = True
            self._notify(
                NoticeLevel.WARNING,
                "Focus session could not be saved",
                "You can keep working; the summary will show an estimated duration.",
            )
            return

        self.session_id = outcome.session_id
        if not outcome.verified:
            self._notify(NoticeLevel.WARNING, "Focus session saved but not verified")

    async def _persist_end(self, summary: SessionSummary, notes: list[SessionNote]) -> None:
        if self._create_task is not None and not self._create_task.done():
            await asyncio.wait({self._create_task})

        if self.session_id is None:
            summary.duration_estimated = True
            return

        outcome = await self._writer.end(
            self.session_id,
            duration_minutes=summary.duration_minutes,
            notes=notes,
            pomodoro_count=summary.pomodoro_count,
        )
        if outcome.ok:
            self._notify(NoticeLevel.SUCCESS, "Focus session saved", f"{summary.format_duration()} of focus")
        else:
            summary.duration_estimated = True
            self._notify(
                NoticeLevel.WARNING,
                "Could not save session end",
                "Duration shown is an estimate.",
            )

    def _spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s crashed", task.get_name(), exc_info=exc)

    async def wait_background(self) -> None:
        """Wait for pending gateway writes (shutdown/tests)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ---- internals ----

    def _set_screen(self, screen: ScreenState) -> None:
        previous = self._screen
        if previous == screen:
            return
        if previous == ScreenState.TRANSITION:
            self._transition_timer.cancel()
        if previous == ScreenState.ALL_DONE_NOT_LOCKED:
            self._auto_exit_timer.cancel()
        if not screen.is_working:
            self._exit_intent = False
            self._exit_intent_timer.cancel()
            self._stop_pomodoro()

        self._screen = screen
        logger.info("Screen %s -> %s", previous.value, screen.value)
        self._refresh_bindings()

    def _refresh_bindings(self) -> None:
        self.dispatcher.register(build_focus_bindings(self))

    def _cancel_timers(self) -> None:
        self._pomodoro_timer.cancel()
        self._transition_timer.cancel()
        self._exit_intent_timer.cancel()
        self._auto_exit_timer.cancel()

    def _mutate(self, task_id: str, update: TaskUpdate) -> None:
        try:
            self._on_task_mutate(task_id, update)
        except Exception:
            logger.exception("on_task_mutate failed task_id=%s update=%s", task_id, update)
            self._notify(NoticeLevel.ERROR, "Failed to update task")

    def _notify(self, level: NoticeLevel, title: str, description: str | None = None) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(Notice(level, title, description))
        except Exception:
            logger.exception("Notifier failed for %r", title)
