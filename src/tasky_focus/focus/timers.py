# src/tasky_focus/focus/timers.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancellableTimer:
    """
    One-shot timer on the running event loop.

    Restarting or cancelling bumps a generation counter, so a callback that was
    already queued by the loop for an older generation is dropped instead of
    firing late.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handle: asyncio.TimerHandle | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        generation = self._generation
        self._handle = loop.call_later(max(0.0, delay_seconds), self._fire, generation, callback)
        logger.debug("Timer %s started (%.2fs)", self.name, delay_seconds)

    def cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Timer %s cancelled", self.name)

    def _fire(self, generation: int, callback: Callable[[], None]) -> None:
        if generation != self._generation:
            return
        self._handle = None
        try:
            callback()
        except Exception:
            logger.exception("Timer %s callback failed", self.name)
