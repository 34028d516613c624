# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasky_focus.cli.bootstrap import create_initial_state
from tasky_focus.core.state import AppState
from tasky_focus.focus.controller import EngineConfig, FocusSessionController
from tasky_focus.persistence.writer import SessionWriter
from tasky_focus.shortcuts.keys import Platform
from tasky_focus.shortcuts.registry import ShortcutDispatcher

from .fakes import FakeClock, FakeGateway, FakeHost, FakeNotifier, make_task


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasky",
        user_id="tester",
        platform="windows",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        sessions_db_path=tmp_path / "focus_sessions.sqlite3",
        tasks_path=tmp_path / "tasks.json",
        # Persistence
        gateway_timeout_seconds=2.0,
        verify_attempts=2,
        retry_delay_seconds=0.0,
        engine_config=lambda: EngineConfig(user_id="tester", transition_seconds=0.01),
    )


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, notifier: FakeNotifier) -> AppState:
    """
    AppState wired through the real bootstrap.

    NOTE: We keep the real SQLite store and JSON task source here because
    their correctness is part of what we want to test.
    """
    return create_initial_state(settings=settings, notifier=notifier)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def host() -> FakeHost:
    return FakeHost([make_task("a", created_at=1.0), make_task("b", created_at=2.0), make_task("c", created_at=3.0)])


@pytest.fixture()
def make_controller(gateway: FakeGateway, notifier: FakeNotifier, clock: FakeClock):
    """Factory: controller wired to a FakeHost (subscribed) and the FakeGateway."""

    def _make(host: FakeHost, **config) -> FocusSessionController:
        config.setdefault("user_id", "tester")
        config.setdefault("transition_seconds", 0.01)
        ctl = FocusSessionController(
            writer=SessionWriter(gateway, timeout_seconds=1.0, verify_attempts=2, retry_delay_seconds=0.0),
            on_task_mutate=host,
            notifier=notifier,
            dispatcher=ShortcutDispatcher(platform=Platform.WINDOWS, notifier=notifier),
            config=EngineConfig(**config),
            clock=clock,
        )
        host.subscribe(ctl.update_tasks)
        return ctl

    return _make
