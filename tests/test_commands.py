# tests/test_commands.py

from __future__ import annotations

import pytest

from tasky_focus.cli.commands import CommandRegistry, registry
from tasky_focus.focus.screens import ScreenState


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_add_and_list_tasks(state) -> None:
    assert "Added task" in registry.handle(state, "/add high Ship release")
    registry.handle(state, "/add Water plants")

    listing = registry.handle(state, "/tasks")
    lines = listing.splitlines()
    assert "Ship release" in lines[1]
    assert "Water plants" in lines[2]


def test_status_without_session(state) -> None:
    assert "No focus session" in registry.handle(state, "/status")
    assert "No focus session" in registry.handle(state, "/note hello")


@pytest.mark.asyncio
async def test_start_with_index_and_intention(state) -> None:
    registry.handle(state, "/add First")
    registry.handle(state, "/add Second")

    emitted: list[str] = []
    reply = registry.handle(state, "/start 2 finish the draft", emit=emitted.append)

    ctl = state.controller
    assert ctl is not None
    assert ctl.screen == ScreenState.ACTIVE
    assert ctl.current_task().title == "Second"
    assert ctl.intention == "finish the draft"
    assert "active" in reply
    assert emitted and "Welcome" in emitted[0]

    assert "already open" in registry.handle(state, "/start")
    assert "Focus Lock: OFF" in registry.handle(state, "/status")

    ctl.end_session()
    await ctl.wait_background()


@pytest.mark.asyncio
async def test_start_without_args_shows_welcome(state) -> None:
    registry.handle(state, "/add Only")
    registry.handle(state, "/start")
    assert state.controller.screen == ScreenState.WELCOME
    assert "start-session" in [b.id for b in state.controller.dispatcher.bindings]


@pytest.mark.asyncio
async def test_history_lists_recorded_sessions(state) -> None:
    assert "No focus sessions" in registry.handle(state, "/history")

    registry.handle(state, "/add Only")
    registry.handle(state, "/start 1")
    registry.handle(state, "/note first note")
    registry.handle(state, "/pomodoro done")
    state.controller.end_session()
    await state.controller.wait_background()

    history = registry.handle(state, "/history")
    assert "pomodoros=1" in history
    assert "notes=1" in history


@pytest.mark.asyncio
async def test_keys_lists_active_shortcuts(state) -> None:
    registry.handle(state, "/add Only")
    registry.handle(state, "/start 1")

    keys = registry.handle(state, "/keys")
    assert "Complete Current Task" in keys
    assert "Ctrl + ↵" in keys

    state.controller.end_session()
    await state.controller.wait_background()


@pytest.mark.asyncio
async def test_status_shows_pomodoro_countdown(state) -> None:
    registry.handle(state, "/add Only")
    registry.handle(state, "/start 1")
    assert "left" not in registry.handle(state, "/status")

    assert registry.handle(state, "/pomodoro") == "Pomodoro running."
    assert " left)" in registry.handle(state, "/status")
    assert registry.handle(state, "/pomodoro") == "Pomodoro paused."
    assert "left, paused)" in registry.handle(state, "/status")

    state.controller.end_session()
    await state.controller.wait_background()
