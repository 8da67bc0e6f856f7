"""Attendance Service - Session lifecycle and claim submission.

This service wires the stores, verifier, audit logger and sweeps together,
providing a clean interface for the API layer.

Design principles:
- Collaborators are constructed once and injected
- Claims are persisted pending, then verified immediately
- Terminal claims are never re-verified
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from proxyfail.common.config import (
    Config,
    VerificationRules,
    get_config,
    load_verification_rules,
)
from proxyfail.common.exceptions import (
    ClaimNotFoundError,
    SessionNotFoundError,
    ValidationError,
)
from proxyfail.data.schemas import Attendance, GeoPoint, Session
from proxyfail.governance.audit import AuditLogger, create_audit_logger
from proxyfail.scheduling import (
    SessionReaper,
    SessionTokenRotator,
    SweepScheduler,
    generate_token,
)
from proxyfail.store import (
    AttendanceStore,
    SessionStore,
    create_attendance_store,
    create_session_store,
)
from proxyfail.verification import AttendanceVerifier, utc_now

logger = logging.getLogger(__name__)


def load_rules_for(config: Config) -> VerificationRules:
    """Rules from the configured file, the bundled file, or built-in defaults."""
    if config.rules_file is not None:
        return load_verification_rules(config.rules_file)
    if config.resolved_rules_file.exists():
        return load_verification_rules(config.resolved_rules_file)
    logger.info("No verification rules file found, using defaults")
    return VerificationRules()


class AttendanceService:
    """Service for the attendance presence flow.

    Orchestrates:
    1. Session creation and manual end
    2. Claim persistence and verification
    3. Token rotation and session reaping sweeps
    """

    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        attendance_store: Optional[AttendanceStore] = None,
        audit_logger: Optional[AuditLogger] = None,
        rules: Optional[VerificationRules] = None,
        clock: Callable[[], datetime] = utc_now,
        config: Optional[Config] = None,
    ):
        """Initialize the service.

        Args:
            session_store: Session store. Created from config if not provided.
            attendance_store: Claim store. Created from config if not provided.
            audit_logger: Audit logger. Created from config if not provided.
            rules: Verification rules. Loaded from config if not provided.
            clock: Returns the current UTC time.
            config: Configuration. Uses the global config if not provided.
        """
        config = config or get_config()
        self.rules = rules or load_rules_for(config)
        self.session_store = session_store or create_session_store(config)
        self.attendance_store = attendance_store or create_attendance_store(config)
        self.audit_logger = audit_logger or create_audit_logger(
            config, rules_version=self.rules.version
        )
        self.clock = clock

        self.verifier = AttendanceVerifier(
            session_store=self.session_store,
            attendance_store=self.attendance_store,
            audit_logger=self.audit_logger,
            rules=self.rules,
            clock=clock,
        )
        self.rotator = SessionTokenRotator(self.session_store, self.rules, clock)
        self.reaper = SessionReaper(self.session_store, self.rules, clock)
        self._scheduler: Optional[SweepScheduler] = None

    def create_session(
        self,
        latitude: float,
        longitude: float,
        session_id: Optional[str] = None,
        token: Optional[str] = None,
        allowed_radius_meters: Optional[float] = None,
        required_beacon_id: Optional[str] = None,
        min_required_rssi: Optional[float] = None,
        course_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> Session:
        """Open an active session with a fresh token window.

        Raises:
            ValidationError: If a session with the given id already exists
        """
        if session_id is not None and self.session_store.get(session_id) is not None:
            raise ValidationError(
                f"Session already exists: {session_id}",
                details={"session_id": session_id},
            )
        now = self.clock()
        session = Session(
            session_id=session_id or f"ses_{uuid4().hex[:12]}",
            token=token or generate_token(self.rules.token.length),
            token_issued_at=now,
            token_expires_at=now + self.rules.rotation_interval,
            created_at=now,
            location=GeoPoint(latitude=latitude, longitude=longitude),
            allowed_radius_meters=(
                allowed_radius_meters
                if allowed_radius_meters is not None
                else self.rules.geofence.default_radius_meters
            ),
            required_beacon_id=required_beacon_id,
            min_required_rssi=(
                min_required_rssi
                if min_required_rssi is not None
                else self.rules.beacon.default_min_rssi
            ),
            is_active=True,
            course_id=course_id,
            teacher_id=teacher_id,
        )
        self.session_store.put(session)
        logger.info(f"Created session {session.session_id} (course={course_id})")
        return session

    def end_session(self, session_id: str) -> Session:
        """Manually end a session.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        now = self.clock()
        self.session_store.update_one(
            session_id, {"isActive": False, "endedAt": now, "autoEnded": False}
        )
        session = self.session_store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Ended session {session_id}")
        return session

    def submit_claim(
        self, claim: Attendance, caller_id: Optional[str] = None
    ) -> Attendance:
        """Persist a pending claim and verify it.

        A claim whose record is already terminal is returned unchanged.
        """
        existing = self.attendance_store.get(claim.attendance_id)
        if existing is not None and existing.is_terminal:
            logger.info(
                f"Claim {claim.attendance_id} already {existing.status.value}, "
                f"skipping verification"
            )
            return existing

        self.attendance_store.put(claim)
        self.verifier.verify(claim, caller_id=caller_id)
        return self.get_claim(claim.attendance_id)

    def get_claim(self, attendance_id: str) -> Attendance:
        """Read a claim back.

        Raises:
            ClaimNotFoundError: If the claim does not exist
        """
        claim = self.attendance_store.get(attendance_id)
        if claim is None:
            raise ClaimNotFoundError(attendance_id)
        return claim

    def start_sweeps(self) -> SweepScheduler:
        """Start the rotation and reaping tasks."""
        if self._scheduler is None:
            self._scheduler = SweepScheduler(self.rotator, self.reaper)
        self._scheduler.start()
        return self._scheduler

    def shutdown(self) -> None:
        """Stop the sweeps and flush pending audit writes."""
        if self._scheduler is not None:
            self._scheduler.stop()
            self._scheduler = None
        if self.audit_logger is not None:
            self.audit_logger.shutdown()
            logger.info("AttendanceService audit logger shutdown complete")
