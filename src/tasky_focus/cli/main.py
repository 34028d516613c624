# src/tasky_focus/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console connector on a
single asyncio event loop (the loop the focus engine's timers and background
session writes live on).
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, release_focus_session
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

# Upper bound for flushing pending session writes on exit.
SHUTDOWN_FLUSH_SECONDS = 15.0


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    ctl = state.controller
    if ctl is not None:
        if not ctl.closed and ctl.start_time is not None and ctl.summary is None:
            logger.warning("App closed with an open focus session; its end time will not be recorded.")
        try:
            await asyncio.wait_for(ctl.wait_background(), timeout=SHUTDOWN_FLUSH_SECONDS)
        except TimeoutError:
            logger.warning("Pending focus session writes did not finish in %.0fs.", SHUTDOWN_FLUSH_SECONDS)
        except Exception:
            logger.exception("Failed to flush focus session writes.")
        release_focus_session(state)

    # FocusSessionStore uses short-lived sqlite connections per call; close() is a no-op hook.
    try:
        state.store.close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


async def _run(state: AppState) -> None:
    try:
        await run_console_loop(state)
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings, notifier=ConsoleNotifier())

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
