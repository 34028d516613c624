# tests/test_controller.py

from __future__ import annotations

import asyncio

import pytest

from tasky_focus.core.ports import NoticeLevel
from tasky_focus.focus.controller import SECONDS_PER_DAY
from tasky_focus.focus.screens import ScreenState
from tasky_focus.shortcuts.keys import KeyEvent
from tasky_focus.tasks.task_models import TaskPriority

from .fakes import FakeHost, make_task


def press(ctl, text: str):
    return ctl.dispatcher.dispatch(KeyEvent.parse(text))


@pytest.mark.asyncio
async def test_complete_every_task_without_lock(host, make_controller, gateway, clock) -> None:
    ctl = make_controller(host)
    assert ctl.screen == ScreenState.WELCOME

    assert ctl.start()
    assert ctl.screen == ScreenState.ACTIVE
    assert ctl.snapshot == ("a", "b", "c")
    assert ctl.current_task().id == "a"

    for expected_next in ("b", "c"):
        clock.advance(5 * 60)
        assert ctl.complete()
        assert ctl.screen == ScreenState.SINGLE_TASK_DONE
        assert ctl.continue_session()
        assert ctl.current_task().id == expected_next

    clock.advance(5 * 60 + 30)
    assert ctl.complete()
    assert ctl.screen == ScreenState.ALL_DONE_NOT_LOCKED

    assert ctl.end_session()
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()

    summary = ctl.summary
    assert (summary.completed_tasks, summary.total_tasks) == (3, 3)
    assert summary.duration_minutes == 15
    assert not summary.duration_estimated
    assert host.mutations == [("a", {"completed": True}), ("b", {"completed": True}), ("c", {"completed": True})]

    assert gateway.count("create") == 1
    assert gateway.count("end") == 1
    (record,) = gateway.records.values()
    assert record["duration"] == 15
    assert record["task_id"] == "a"


@pytest.mark.asyncio
async def test_locked_session_auto_unlocks_before_all_done_screen(host, make_controller, notifier) -> None:
    ctl = make_controller(host)
    seen: list[tuple[bool, ScreenState]] = []
    ctl.on_lock_changed = lambda locked: seen.append((locked, ctl.screen))

    ctl.start()
    assert press(ctl, "ctrl+l").binding_id == "toggle-focus-lock"
    assert ctl.locked

    ctl.complete()
    ctl.continue_session()
    ctl.complete()
    ctl.continue_session()
    ctl.complete()

    assert ctl.screen == ScreenState.ALL_DONE_WAS_LOCKED
    assert not ctl.locked
    # The unlock is observed while the previous screen is still showing.
    assert seen == [(True, ScreenState.ACTIVE), (False, ScreenState.ACTIVE)]
    assert "Focus Lock auto-unlocked" in notifier.titles(NoticeLevel.INFO)

    ctl.end_session()
    await ctl.wait_background()
    assert ctl.summary.auto_unlocked


@pytest.mark.asyncio
async def test_focus_lock_vetoes_exit(host, make_controller, notifier) -> None:
    ctl = make_controller(host)
    ctl.start()
    ctl.toggle_lock()

    result = press(ctl, "escape")
    assert result.binding_id == "exit-focus"
    assert ctl.screen == ScreenState.ACTIVE
    assert notifier.notices[-1].level == NoticeLevel.ERROR
    assert notifier.notices[-1].title == "Focus Lock is active"

    # Task shortcuts keep working under the lock.
    assert press(ctl, "arrowright").binding_id == "next-task"

    ctl.toggle_lock()
    ctl.dismiss_transition()
    assert ctl.request_exit()
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_end_is_idempotent(host, make_controller, gateway) -> None:
    ctl = make_controller(host)
    ctl.start()
    assert ctl.end_session()
    assert not ctl.end_session()
    assert not ctl.request_exit()
    await ctl.wait_background()
    assert gateway.count("end") == 1


@pytest.mark.asyncio
async def test_snapshot_ignores_tasks_added_mid_session(host, make_controller) -> None:
    ctl = make_controller(host)
    ctl.start()

    host.tasks["d"] = make_task("d", created_at=0.5)
    host.push()

    assert ctl.snapshot == ("a", "b", "c")
    assert ctl.progress() == (0, 3)
    assert "d" in ctl.navigator.task_ids()
    # Completing a task outside the snapshot does not count toward progress.
    ctl.navigator.select("d")
    ctl.complete()
    assert ctl.progress() == (0, 3)
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_transition_returns_to_active_on_next_task(host, make_controller) -> None:
    ctl = make_controller(host, transition_seconds=0.01)
    ctl.start()

    assert press(ctl, "arrowright").handled
    assert ctl.screen == ScreenState.TRANSITION
    # Only global shortcuts during the interstitial.
    assert not press(ctl, "ctrl+enter").handled

    await asyncio.sleep(0.05)
    assert ctl.screen == ScreenState.ACTIVE
    assert ctl.current_task().id == "b"
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_cancelled_transition_timer_never_fires(host, make_controller) -> None:
    ctl = make_controller(host, transition_seconds=0.02)
    ctl.start()
    ctl.next_task()
    assert ctl.screen == ScreenState.TRANSITION

    assert ctl.request_exit()
    assert ctl.screen == ScreenState.SESSION_SUMMARY

    await asyncio.sleep(0.06)
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_navigation_boundaries_notify(host, make_controller, notifier) -> None:
    ctl = make_controller(host)
    ctl.start()
    ctl.previous_task()
    assert notifier.titles(NoticeLevel.INFO)[-1] == "This is the first task"
    assert ctl.screen == ScreenState.ACTIVE
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_postpone_moves_task_to_tomorrow(host, make_controller, clock) -> None:
    ctl = make_controller(host)
    ctl.start()

    assert press(ctl, "ctrl+shift+arrowright").binding_id == "postpone-task"
    assert host.mutations == [("a", {"due_at": clock() + SECONDS_PER_DAY})]
    assert ctl.screen == ScreenState.TRANSITION
    assert ctl.navigator.task_ids() == ["b", "c"]
    ctl.dismiss_transition()
    assert ctl.current_task().id == "b"
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_snoozing_the_last_task_ends_the_queue(make_controller, clock) -> None:
    host = FakeHost([make_task("only")])
    ctl = make_controller(host, snooze_hours=2)
    ctl.start()
    ctl.toggle_lock()

    assert press(ctl, "ctrl+s").binding_id == "snooze-task"
    assert host.mutations == [("only", {"snoozed_until": clock() + 2 * 3600})]
    assert ctl.screen == ScreenState.ALL_DONE_WAS_LOCKED
    assert not ctl.locked
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_snoozed_task_returns_after_snooze_expires(host, make_controller, clock) -> None:
    ctl = make_controller(host, snooze_hours=2)
    ctl.start()

    assert ctl.snooze()
    ctl.dismiss_transition()
    assert ctl.navigator.task_ids() == ["b", "c"]
    assert ctl.current_task().id == "b"

    clock.advance(3 * 3600)
    host.push()

    assert ctl.navigator.task_ids() == ["a", "b", "c"]
    assert ctl.current_task().id == "b"
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_postponed_task_stays_hidden_for_the_session(host, make_controller, clock) -> None:
    ctl = make_controller(host)
    ctl.start()

    assert ctl.postpone()
    ctl.dismiss_transition()
    clock.advance(2 * SECONDS_PER_DAY)
    host.push()

    assert "a" not in ctl.navigator.task_ids()
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_host_draining_the_queue_finishes_session(host, make_controller) -> None:
    ctl = make_controller(host)
    ctl.start()
    for task_id in list(host.tasks):
        host.tasks[task_id] = make_task(task_id, completed=True)
    host.push()

    assert ctl.screen == ScreenState.ALL_DONE_NOT_LOCKED
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_empty_queue_at_entry_skips_session_record(make_controller, gateway) -> None:
    ctl = make_controller(FakeHost([]))
    ctl.start()
    assert ctl.screen == ScreenState.EMPTY_AT_ENTRY

    assert press(ctl, "enter").binding_id == "end-session"
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_ending_after_single_task_releases_the_lock(host, make_controller) -> None:
    ctl = make_controller(host)
    ctl.start()
    ctl.toggle_lock()
    ctl.complete()
    assert ctl.screen == ScreenState.SINGLE_TASK_DONE

    assert press(ctl, "escape").binding_id == "end-session"
    assert not ctl.locked
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_create_failure_marks_duration_estimated(host, make_controller, gateway, notifier) -> None:
    gateway.fail_create = True
    ctl = make_controller(host)
    ctl.start()
    await ctl.wait_background()
    assert "Focus session could not be saved" in notifier.titles(NoticeLevel.WARNING)
    # The user keeps working.
    assert ctl.screen == ScreenState.ACTIVE

    ctl.end_session()
    await ctl.wait_background()
    assert ctl.summary.duration_estimated
    assert ctl.summary.format_duration().startswith("~")
    assert gateway.count("end") == 0


@pytest.mark.asyncio
async def test_end_failure_is_retried_then_reported(host, make_controller, gateway, notifier) -> None:
    gateway.fail_end = 10
    ctl = make_controller(host)
    ctl.start()
    ctl.end_session()
    await ctl.wait_background()

    assert gateway.count("end") == 2
    assert ctl.summary.duration_estimated
    assert "Could not save session end" in notifier.titles(NoticeLevel.WARNING)


@pytest.mark.asyncio
async def test_end_before_create_finishes_waits_for_create(host, make_controller, gateway) -> None:
    gateway.delay = 0.02
    ctl = make_controller(host)
    ctl.start()
    ctl.end_session()
    assert ctl.screen == ScreenState.SESSION_SUMMARY

    await ctl.wait_background()
    ops = [name for name, _ in gateway.calls]
    assert ops.index("create") < ops.index("end")
    assert not ctl.summary.duration_estimated


@pytest.mark.asyncio
async def test_exit_confirmation_requires_second_press(host, make_controller, notifier) -> None:
    ctl = make_controller(host, exit_confirm_seconds=5.0)
    ctl.start()

    assert not ctl.request_exit()
    assert ctl.exit_intent
    assert notifier.titles(NoticeLevel.INFO)[-1] == "Press exit again to leave Focus Mode"
    assert ctl.request_exit()
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_auto_exit_after_all_done(make_controller) -> None:
    ctl = make_controller(FakeHost([make_task("only")]), auto_exit_seconds=0.01)
    ctl.start()
    ctl.complete()
    assert ctl.screen == ScreenState.ALL_DONE_NOT_LOCKED

    await asyncio.sleep(0.05)
    assert ctl.screen == ScreenState.SESSION_SUMMARY
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_quick_note_is_modal(host, make_controller, gateway) -> None:
    ctl = make_controller(host)
    ctl.start()

    assert press(ctl, "ctrl+alt+n").binding_id == "quick-note"
    assert ctl.dispatcher.modal_open
    assert not press(ctl, "arrowright").handled
    assert press(ctl, "ctrl+l").handled

    ctl.close_quick_note("remember the edge case")
    assert not ctl.dispatcher.modal_open
    assert [n.text for n in ctl.notes] == ["remember the edge case"]
    assert ctl.notes[0].task_id == "a"

    ctl.toggle_lock()
    ctl.end_session()
    await ctl.wait_background()
    _, (_, _, notes, _) = [c for c in gateway.calls if c[0] == "end"][0]
    assert [(n.text, n.task_id) for n in notes] == [("remember the edge case", "a")]


@pytest.mark.asyncio
async def test_close_summary_hands_back_to_host(host, make_controller) -> None:
    exits: list[bool] = []
    ctl = make_controller(host)
    ctl.on_exit_requested = lambda: exits.append(True)
    ctl.start()
    ctl.end_session()

    assert press(ctl, "enter").binding_id == "close-summary"
    assert ctl.closed
    assert exits == [True]
    assert ctl.dispatcher.bindings == []
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_pomodoro_count_reaches_the_record(host, make_controller, gateway) -> None:
    ctl = make_controller(host)
    ctl.start()
    assert press(ctl, "p").binding_id == "toggle-pomodoro"
    assert ctl.pomodoro_running
    ctl.record_pomodoro()
    ctl.record_pomodoro()
    ctl.end_session()
    await ctl.wait_background()

    assert not ctl.pomodoro_running
    assert ctl.summary.pomodoro_count == 2
    (record,) = gateway.records.values()
    assert record["pomodoro_count"] == 2


@pytest.mark.asyncio
async def test_high_then_low_priority_session(make_controller, gateway) -> None:
    host = FakeHost(
        [
            make_task("B", priority=TaskPriority.LOW, created_at=1.0),
            make_task("A", priority=TaskPriority.HIGH, created_at=2.0),
        ]
    )
    ctl = make_controller(host)
    ctl.start()
    assert ctl.current_task().id == "A"

    ctl.complete()
    assert ctl.screen == ScreenState.SINGLE_TASK_DONE
    ctl.continue_session()
    assert ctl.current_task().id == "B"

    ctl.complete()
    assert ctl.screen == ScreenState.ALL_DONE_NOT_LOCKED
    ctl.end_session()
    await ctl.wait_background()

    assert (ctl.summary.completed_tasks, ctl.summary.total_tasks) == (2, 2)
    assert gateway.count("create") == 1


@pytest.mark.asyncio
async def test_pomodoro_countdown_records_on_completion(host, make_controller, notifier) -> None:
    ctl = make_controller(host, pomodoro_minutes=0.001)
    ctl.start()

    assert ctl.toggle_pomodoro()
    await asyncio.sleep(0.2)

    assert ctl.pomodoro_count == 1
    assert not ctl.pomodoro_running
    assert "Pomodoro complete!" in notifier.titles(NoticeLevel.SUCCESS)
    ctl.end_session()
    await ctl.wait_background()
    assert ctl.summary.pomodoro_count == 1


@pytest.mark.asyncio
async def test_paused_pomodoro_keeps_remaining_time(host, make_controller, clock) -> None:
    ctl = make_controller(host, pomodoro_minutes=25)
    ctl.start()
    assert ctl.pomodoro_seconds_left() == 25 * 60

    ctl.toggle_pomodoro()
    clock.advance(600)
    assert not ctl.toggle_pomodoro()
    clock.advance(300)
    assert ctl.pomodoro_paused
    assert ctl.pomodoro_seconds_left() == 25 * 60 - 600

    assert ctl.toggle_pomodoro()
    clock.advance(60)
    assert ctl.pomodoro_seconds_left() == 25 * 60 - 660
    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_leaving_work_screens_cancels_pomodoro(host, make_controller) -> None:
    ctl = make_controller(host, pomodoro_minutes=0.001)
    ctl.start()
    ctl.toggle_pomodoro()

    ctl.end_session()
    assert not ctl.pomodoro_running
    await asyncio.sleep(0.2)
    await ctl.wait_background()

    assert ctl.pomodoro_count == 0
    assert ctl.summary.pomodoro_count == 0
