# src/tasky_focus/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Engine tuning (timers, retries) lives here, the engine itself takes an EngineConfig.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .focus.controller import EngineConfig

ENV_PREFIX = "TASKY"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    user_id: str
    platform: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    sessions_db_path: Path
    tasks_path: Path

    # ---- Focus engine ----
    transition_seconds: float
    exit_confirm_seconds: float
    auto_exit_seconds: float
    snooze_hours: float
    postpone_days: int
    pomodoro_minutes: float

    # ---- Persistence ----
    gateway_timeout_seconds: float
    verify_attempts: int
    retry_delay_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasky") or "tasky"
        # Notices and screens are printed by the console itself; engine logs go to the file.
        log_level = _env(_k("LOG_LEVEL"), "WARNING")
        user_id = (_env(_k("USER_ID"), "") or os.getenv("USER") or "local").strip()
        platform = _env(_k("PLATFORM"), "auto").strip().lower()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasky"))
        sessions_db_path = _env_path(_k("SESSIONS_DB_PATH"), data_dir / "focus_sessions.sqlite3")
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_id=user_id,
            platform=platform,
            data_dir=data_dir,
            sessions_db_path=sessions_db_path,
            tasks_path=tasks_path,
            transition_seconds=max(0.0, _env_float(_k("TRANSITION_SECONDS"), 3.0)),
            exit_confirm_seconds=max(0.0, _env_float(_k("EXIT_CONFIRM_SECONDS"), 0.0)),
            auto_exit_seconds=max(0.0, _env_float(_k("AUTO_EXIT_SECONDS"), 0.0)),
            snooze_hours=max(0.0, _env_float(_k("SNOOZE_HOURS"), 2.0)),
            postpone_days=max(1, _env_int(_k("POSTPONE_DAYS"), 1)),
            pomodoro_minutes=max(0.1, _env_float(_k("POMODORO_MINUTES"), 25.0)),
            gateway_timeout_seconds=max(0.1, _env_float(_k("GATEWAY_TIMEOUT_SECONDS"), 10.0)),
            verify_attempts=max(1, _env_int(_k("VERIFY_ATTEMPTS"), 3)),
            retry_delay_seconds=max(0.0, _env_float(_k("RETRY_DELAY_SECONDS"), 1.0)),
        )

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            user_id=self.user_id,
            transition_seconds=self.transition_seconds,
            exit_confirm_seconds=self.exit_confirm_seconds,
            auto_exit_seconds=self.auto_exit_seconds,
            snooze_hours=self.snooze_hours,
            postpone_days=self.postpone_days,
            pomodoro_minutes=self.pomodoro_minutes,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
