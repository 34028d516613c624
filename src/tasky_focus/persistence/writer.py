# src/tasky_focus/persistence/writer.py

from __future__ import annotations

"""
Session writer.

Runs the gateway writes for a focus session in the background:
- create the record, then read it back until verified,
- end the record, then read it back; on mismatch/failure retry the write,
- every gateway call is bounded by a timeout.

The writer never raises; outcomes are returned so the caller can surface them
as notifications after the fact.
"""

import asyncio
import logging
from dataclasses import dataclass

from ..core.ports import SessionGateway, SessionNote

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class WriteOutcome:
    ok: bool
    verified: bool
    attempts: int
    session_id: str | None = None
    error: str | None = None


class SessionWriter:
    def __init__(
            self,
            gateway: SessionGateway,
            *,
            timeout_seconds: float = 10.0,
            verify_attempts: int = 3,
            retry_delay_seconds: float = 1.0,
    ) -> None:
        self.gateway = gateway
        self.timeout_s = max(0.01, float(timeout_seconds))
        self.attempts = max(1, int(verify_attempts))
        self.retry_s = max(0.0, float(retry_delay_seconds))

    async def _verify(self, session_id: str) -> bool:
        try:
            return bool(await asyncio.wait_for(self.gateway.verify(session_id), self.timeout_s))
        except Exception as e:
            logger.warning("verify failed session_id=%s: %s", session_id, e)
            return False

    async def create(
            self,
            *,
            user_id: str,
            task_id: str | None = None,
            intention: str | None = None,
            background: str | None = None,
    ) -> WriteOutcome:
        """
        Create the session record.

        Creation itself is not retried (a retry could duplicate the record);
        only the read-back is repeated.
        """
        try:
            session_id = await asyncio.wait_for(
                self.gateway.create_session(user_id, task_id, intention, background),
                self.timeout_s,
            )
        except Exception as e:
            logger.warning("create_session failed user_id=%s: %r", user_id, e)
            return WriteOutcome(ok=False, verified=False, attempts=1, error=repr(e))

        session_id = str(session_id)
        for attempt in range(1, self.attempts + 1):
            if await self._verify(session_id):
                logger.info("Focus session %s created (verified, attempt %d)", session_id, attempt)
                return WriteOutcome(ok=True, verified=True, attempts=attempt, session_id=session_id)

            logger.warning("create verification mismatch session_id=%s attempt=%d", session_id, attempt)
            if attempt < self.attempts:
                await asyncio.sleep(self.retry_s)

        return WriteOutcome(
            ok=True,
            verified=False,
            attempts=self.attempts,
            session_id=session_id,
            error="verification mismatch",
        )

    async def end(
            self,
            session_id: str,
            *,
            duration_minutes: int,
            notes: list[SessionNote],
            pomodoro_count: int,
    ) -> WriteOutcome:
        """End the session record; write+verify is retried as a unit."""
        last_error: str | None = None

        for attempt in range(1, self.attempts + 1):
            try:
                await asyncio.wait_for(
                    self.gateway.end_session(session_id, int(duration_minutes), list(notes), int(pomodoro_count)),
                    self.timeout_s,
                )
            except Exception as e:
                last_error = repr(e)
                logger.warning("end_session failed session_id=%s attempt=%d: %s", session_id, attempt, last_error)
            else:
                if await self._verify(session_id):
                    logger.info(
                        "Focus session %s ended duration=%dm (verified, attempt %d)",
                        session_id,
                        duration_minutes,
                        attempt,
                    )
                    return WriteOutcome(ok=True, verified=True, attempts=attempt, session_id=session_id)
                last_error = "verification mismatch"
                logger.warning("end verification mismatch session_id=%s attempt=%d", session_id, attempt)

            if attempt < self.attempts:
                await asyncio.sleep(self.retry_s)

        logger.error("Giving up on ending focus session %s: %s", session_id, last_error)
        return WriteOutcome(
            ok=False,
            verified=False,
            attempts=self.attempts,
            session_id=session_id,
            error=last_error,
        )
