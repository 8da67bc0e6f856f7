"""Attendance Verifier - The Only Place Verdicts Happen.

This module is the single point where claims receive a verdict.
No other module may move a claim out of the pending state.

Rule chain (first failure is terminal):
1. Session existence
2. Token match
3. Window validity
4. Device integrity
5. Beacon factor (only when the session requires one)
6. Location availability
7. Geofence
8. Identity resolution
9. Accept

Error Handling:
- Infrastructure failures produce a rejected/internal_error verdict
- Audit failures are logged, never raised
- Every call returns a terminal Verdict
"""

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Optional

from proxyfail.common.config import VerificationRules
from proxyfail.core import AttendanceStatus, Verdict, VerdictReason
from proxyfail.data.schemas import Attendance, Session
from proxyfail.geo import distance_meters, round_meters
from proxyfail.governance.audit import AuditLogger
from proxyfail.store import AttendanceStore, SessionStore

logger = logging.getLogger(__name__)

DistanceFn = Callable[[float, float, float, float], float]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AttendanceVerifier:
    """Evaluates attendance claims against their session.

    Lifecycle:
    1. Read the session once
    2. Evaluate the rule chain
    3. Persist the verdict on the claim
    4. Append the audit entry
    """

    def __init__(
        self,
        session_store: SessionStore,
        attendance_store: Optional[AttendanceStore] = None,
        audit_logger: Optional[AuditLogger] = None,
        rules: Optional[VerificationRules] = None,
        distance_fn: DistanceFn = distance_meters,
        clock: Clock = utc_now,
    ):
        """Initialize the verifier.

        Args:
            session_store: Source of session records.
            attendance_store: Where verdict fields are written. Skipped if None.
            audit_logger: Receives one entry per verdict. Skipped if None.
            rules: Verification thresholds. Built-in defaults if None.
            distance_fn: Great-circle distance in meters.
            clock: Returns the current UTC time.
        """
        self.session_store = session_store
        self.attendance_store = attendance_store
        self.audit_logger = audit_logger
        self.rules = rules or VerificationRules()
        self.distance_fn = distance_fn
        self.clock = clock

    def verify(self, claim: Attendance, caller_id: Optional[str] = None) -> Verdict:
        """Verify one claim and record the outcome.

        Args:
            claim: The pending attendance claim
            caller_id: Authenticated caller identity, if any

        Returns:
            Terminal Verdict. Never raises.
        """
        now = self.clock()
        try:
            session = None
            if claim.session_id:
                session = self.session_store.get(claim.session_id)
            verdict = self.evaluate(claim, session, caller_id=caller_id, now=now)
        except Exception as e:
            logger.error(
                f"Verification failed for claim {claim.attendance_id}: {e}",
                exc_info=True,
            )
            verdict = self._internal_error(claim, e, now)

        verdict = self._persist(claim, verdict)
        self._audit(claim, verdict)

        if verdict.is_present:
            logger.info(
                f"Claim {claim.attendance_id} accepted for student "
                f"{verdict.student_id} (distance={verdict.distance_meters}m)"
            )
        else:
            logger.info(
                f"Claim {claim.attendance_id} rejected: {verdict.reason.value}"
            )
        return verdict

    def evaluate(
        self,
        claim: Attendance,
        session: Optional[Session],
        caller_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Verdict:
        """Run the rule chain against an already loaded session.

        Pure: no store reads or writes happen here.
        """
        now = now or self.clock()

        def reject(
            reason: VerdictReason,
            distance: Optional[int] = None,
            rssi: Optional[float] = None,
        ) -> Verdict:
            return Verdict(
                attendance_id=claim.attendance_id,
                session_id=claim.session_id,
                status=AttendanceStatus.REJECTED,
                reason=reason,
                distance_meters=distance,
                submitted_rssi=rssi,
                decided_at=now,
            )

        if not claim.session_id:
            return reject(VerdictReason.MISSING_SESSION_ID)
        if session is None:
            return reject(VerdictReason.SESSION_NOT_FOUND)

        if claim.scanned_token != session.token:
            return reject(VerdictReason.INVALID_QR)

        if not session.is_active:
            return reject(VerdictReason.SESSION_INACTIVE)
        expiry = session.effective_expiry(self.rules.fallback_window)
        if not (session.token_issued_at <= now <= expiry):
            return reject(VerdictReason.SESSION_EXPIRED)

        if claim.device_integrity is not True:
            return reject(VerdictReason.DEVICE_INTEGRITY_FAILED)
        if claim.mock_location_detected is True:
            return reject(VerdictReason.MOCK_LOCATION_DETECTED)

        submitted_rssi = None
        if session.required_beacon_id:
            rssi = claim.beacon_rssi
            if not claim.scanned_beacon_id or rssi is None or not math.isfinite(rssi):
                return reject(VerdictReason.BEACON_DATA_MISSING)
            if claim.scanned_beacon_id != session.required_beacon_id:
                return reject(VerdictReason.INVALID_BEACON_ID)
            if rssi < session.min_required_rssi:
                return reject(VerdictReason.BEACON_TOO_FAR, rssi=rssi)
            submitted_rssi = rssi

        if session.location is None or not session.location.has_coordinates:
            return reject(VerdictReason.SESSION_LOCATION_MISSING, rssi=submitted_rssi)
        if not claim.has_coordinates:
            return reject(VerdictReason.CLAIM_LOCATION_MISSING, rssi=submitted_rssi)

        distance = self.distance_fn(
            session.location.latitude,
            session.location.longitude,
            claim.latitude,
            claim.longitude,
        )
        rounded = round_meters(distance)
        if distance > session.allowed_radius_meters:
            return reject(VerdictReason.OUT_OF_RANGE, distance=rounded, rssi=submitted_rssi)

        student_id = caller_id or claim.student_id
        if not student_id:
            return reject(
                VerdictReason.MISSING_STUDENT_ID, distance=rounded, rssi=submitted_rssi
            )

        return Verdict(
            attendance_id=claim.attendance_id,
            session_id=claim.session_id,
            status=AttendanceStatus.PRESENT,
            reason=VerdictReason.VERIFIED_PRESENT,
            distance_meters=rounded,
            submitted_rssi=submitted_rssi,
            student_id=student_id,
            verified_at=now,
            decided_at=now,
        )

    def _internal_error(
        self, claim: Attendance, error: Exception, now: datetime
    ) -> Verdict:
        return Verdict(
            attendance_id=claim.attendance_id,
            session_id=claim.session_id,
            status=AttendanceStatus.REJECTED,
            reason=VerdictReason.INTERNAL_ERROR,
            error_details=f"{type(error).__name__}: {error}",
            decided_at=now,
        )

    def _persist(self, claim: Attendance, verdict: Verdict) -> Verdict:
        """Write the verdict onto the claim record.

        A failed write is replaced by an internal_error verdict, which is
        written in turn so the claim does not stay pending.
        """
        if self.attendance_store is None:
            return verdict

        try:
            self.attendance_store.update(claim.attendance_id, verdict.to_claim_fields())
            return verdict
        except Exception as e:
            logger.error(
                f"Failed to persist verdict for claim {claim.attendance_id}: {e}",
                exc_info=True,
            )
            if verdict.reason == VerdictReason.INTERNAL_ERROR:
                return verdict
            fallback = self._internal_error(claim, e, verdict.decided_at)

        try:
            self.attendance_store.update(claim.attendance_id, fallback.to_claim_fields())
        except Exception as e:
            logger.error(
                f"Failed to persist internal_error for claim {claim.attendance_id}: {e}",
                exc_info=True,
            )
        return fallback

    def _audit(self, claim: Attendance, verdict: Verdict) -> None:
        if self.audit_logger is None:
            return
        try:
            self.audit_logger.log_verdict(verdict, claim)
        except Exception as e:
            logger.error(
                f"Failed to write audit entry for claim {claim.attendance_id}: {e}",
                exc_info=True,
            )
