"""Scheduled sweeps over active sessions.

SessionTokenRotator replaces every active session's token on a fixed
interval. SessionReaper ends sessions that outlived the maximum age.

Both apply their updates as one atomic batch per run. A failed run is
logged and reported; the next tick is the retry.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from proxyfail.common.constants import TokenConstants
from proxyfail.common.config import VerificationRules
from proxyfail.store import SessionStore
from proxyfail.verification import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep run."""
    success: bool
    affected: int = 0
    error: Optional[str] = None


def generate_token(
    length: int = TokenConstants.TOKEN_LENGTH,
    previous: Optional[str] = None,
) -> str:
    """Uniform random uppercase alphanumeric token, never equal to previous."""
    while True:
        token = "".join(
            secrets.choice(TokenConstants.TOKEN_ALPHABET) for _ in range(length)
        )
        if token != previous:
            return token


class SessionTokenRotator:
    """Assigns a fresh token to every active session."""

    def __init__(
        self,
        session_store: SessionStore,
        rules: Optional[VerificationRules] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_store = session_store
        self.rules = rules or VerificationRules()
        self.clock = clock

    @property
    def interval(self) -> timedelta:
        return self.rules.rotation_interval

    def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """Rotate tokens of all active sessions in one batch."""
        now = now or self.clock()
        try:
            sessions = self.session_store.query_active()
            if not sessions:
                logger.debug("Token rotation: no active sessions")
                return SweepResult(success=True)

            expires_at = now + self.interval
            updates = [
                (
                    session.session_id,
                    {
                        "token": generate_token(self.rules.token.length, session.token),
                        "tokenIssuedAt": now,
                        "tokenExpiresAt": expires_at,
                        "lastRotated": now,
                    },
                )
                for session in sessions
            ]
            self.session_store.batch_update(updates)
        except Exception as e:
            logger.error(f"Token rotation failed: {e}", exc_info=True)
            return SweepResult(success=False, error=f"{type(e).__name__}: {e}")

        logger.info(f"Rotated tokens for {len(updates)} active session(s)")
        return SweepResult(success=True, affected=len(updates))


class SessionReaper:
    """Ends active sessions whose start time exceeds the maximum age."""

    def __init__(
        self,
        session_store: SessionStore,
        rules: Optional[VerificationRules] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_store = session_store
        self.rules = rules or VerificationRules()
        self.clock = clock

    @property
    def interval(self) -> timedelta:
        return self.rules.reaper_interval

    @property
    def max_age(self) -> timedelta:
        return self.rules.max_session_age

    def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """Mark every over-age active session inactive in one batch."""
        now = now or self.clock()
        cutoff = now - self.max_age
        try:
            stale = [
                s for s in self.session_store.query_active()
                if s.created_at < cutoff
            ]
            if not stale:
                logger.debug("Session reaper: no stale sessions")
                return SweepResult(success=True)

            updates = [
                (
                    session.session_id,
                    {"isActive": False, "endedAt": now, "autoEnded": True},
                )
                for session in stale
            ]
            self.session_store.batch_update(updates)
        except Exception as e:
            logger.error(f"Session reaping failed: {e}", exc_info=True)
            return SweepResult(success=False, error=f"{type(e).__name__}: {e}")

        logger.info(f"Auto-ended {len(updates)} stale session(s)")
        return SweepResult(success=True, affected=len(updates))
