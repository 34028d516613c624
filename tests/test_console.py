# tests/test_console.py

from __future__ import annotations

import pytest

from tasky_focus.connectors.console_connector import ConsoleNotifier, ScreenPrinter, handle_console_line
from tasky_focus.core.ports import Notice, NoticeLevel
from tasky_focus.focus.screens import ScreenState


def test_console_notifier_formats_level_and_description() -> None:
    out: list[str] = []
    ConsoleNotifier(out.append).notify(Notice(NoticeLevel.ERROR, "Focus Lock is active", "Disable it first."))
    assert out == ["[ERROR] Focus Lock is active: Disable it first."]


def test_quit_and_keys_without_session(state) -> None:
    out: list[str] = []
    view = ScreenPrinter(out.append)

    assert handle_console_line(state, "   ", view)
    assert handle_console_line(state, "enter", view)
    assert "No focus session" in out[-1]
    assert not handle_console_line(state, "/quit", view)


@pytest.mark.asyncio
async def test_full_session_through_console_lines(state) -> None:
    out: list[str] = []
    view = ScreenPrinter(out.append)

    handle_console_line(state, "/add Write tests", view)
    handle_console_line(state, "/start", view)
    assert "Welcome to Focus Mode" in out[-1]

    handle_console_line(state, "enter", view)
    ctl = state.controller
    assert ctl.screen == ScreenState.ACTIVE
    assert "Now: Write tests" in out[-1]

    handle_console_line(state, "ctrl+l", view)
    assert state.nav_locked

    handle_console_line(state, "ctrl+enter", view)
    assert ctl.screen == ScreenState.ALL_DONE_WAS_LOCKED
    assert not state.nav_locked
    assert "turned off automatically" in out[-1]
    assert state.task_source.tasks[0].completed

    handle_console_line(state, "enter", view)
    assert "Session summary" in out[-1]
    await ctl.wait_background()

    handle_console_line(state, "enter", view)
    assert ctl.closed
    assert "Back to the dashboard" in out[-1]

    # The closed session no longer follows the task file.
    state.task_source.add_task("Later")
    assert len(ctl.navigator) == 0


@pytest.mark.asyncio
async def test_quick_note_text_entry(state) -> None:
    out: list[str] = []
    view = ScreenPrinter(out.append)
    handle_console_line(state, "/add Write tests", view)
    handle_console_line(state, "/start 1", view)
    ctl = state.controller

    handle_console_line(state, "ctrl+alt+n", view)
    assert ctl.quick_note_open
    handle_console_line(state, "check the retry path", view)
    assert not ctl.quick_note_open
    assert [n.text for n in ctl.notes] == ["check the retry path"]
    assert ctl.notes[0].task_id == ctl.current_task().id

    handle_console_line(state, "ctrl+alt+n", view)
    handle_console_line(state, "esc", view)
    assert len(ctl.notes) == 1
    assert "[NOTE] Cancelled." in out

    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_unknown_key_hint(state) -> None:
    out: list[str] = []
    view = ScreenPrinter(out.append)
    handle_console_line(state, "/add A", view)
    handle_console_line(state, "/start 1", view)

    handle_console_line(state, "ctrl+q", view)
    assert "No shortcut for 'ctrl+q'" in out[-1]

    state.controller.end_session()
    await state.controller.wait_background()


@pytest.mark.asyncio
async def test_summary_redrawn_when_duration_becomes_estimated(state) -> None:
    out: list[str] = []
    view = ScreenPrinter(out.append)
    handle_console_line(state, "/add A", view)
    handle_console_line(state, "/start 1", view)
    ctl = state.controller

    ctl.end_session()
    await ctl.wait_background()
    view.refresh(state)
    assert "Focus time: ~" not in out[-1]
    printed = len(out)

    # A late end-write failure marks the stored duration unconfirmed.
    ctl.summary.duration_estimated = True
    view.refresh(state)

    assert len(out) == printed + 1
    assert "Focus time: ~" in out[-1]
