# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep local data out of git:
- .env (local, gitignored)
- .local/tasky/ (sessions database, task file, logs)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKY_APP_NAME": "App display name (default: tasky).",
    "TASKY_LOG_LEVEL": "Console logging level (default: WARNING). The log file always gets DEBUG.",
    "TASKY_USER_ID": "Owner of recorded focus sessions (default: $USER, then 'local').",
    "TASKY_PLATFORM": "Shortcut layout: mac | windows | auto (default: auto, by OS).",
    # Paths (gitignored)
    "TASKY_DATA_DIR": "Local data directory (default: .local/tasky).",
    "TASKY_SESSIONS_DB_PATH": "Focus session SQLite path (default: <data_dir>/focus_sessions.sqlite3).",
    "TASKY_TASKS_PATH": "Task list JSON path (default: <data_dir>/tasks.json).",
    # Focus engine
    "TASKY_TRANSITION_SECONDS": "Length of the 'up next' interstitial (default: 3).",
    "TASKY_EXIT_CONFIRM_SECONDS": "Window for 'press exit again' confirmation; 0 disables (default: 0).",
    "TASKY_AUTO_EXIT_SECONDS": "Auto-end after all tasks are done (unlocked only); 0 disables (default: 0).",
    "TASKY_SNOOZE_HOURS": "Snooze length in hours (default: 2).",
    "TASKY_POSTPONE_DAYS": "Postpone distance in days (default: 1).",
    "TASKY_POMODORO_MINUTES": "Pomodoro focus countdown length in minutes (default: 25).",
    # Persistence
    "TASKY_GATEWAY_TIMEOUT_SECONDS": "Timeout for each session write/verify call (default: 10).",
    "TASKY_VERIFY_ATTEMPTS": "Write/verify attempts before giving up (default: 3).",
    "TASKY_RETRY_DELAY_SECONDS": "Delay between attempts (default: 1.0).",
}
