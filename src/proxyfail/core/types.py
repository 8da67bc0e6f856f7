"""Core types and enums."""

from enum import Enum


class AttendanceStatus(str, Enum):
    """Lifecycle state of an attendance claim."""
    PENDING = "pending"
    PRESENT = "present"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not AttendanceStatus.PENDING


class VerdictReason(str, Enum):
    """Reason codes attached to every verdict.

    Ordered as the rule chain evaluates them.
    """
    MISSING_SESSION_ID = "missing_session_id"
    SESSION_NOT_FOUND = "session_not_found"
    INVALID_QR = "invalid_qr"
    SESSION_INACTIVE = "session_inactive"
    SESSION_EXPIRED = "session_expired"
    DEVICE_INTEGRITY_FAILED = "device_integrity_failed"
    MOCK_LOCATION_DETECTED = "mock_location_detected"
    BEACON_DATA_MISSING = "beacon_data_missing"
    INVALID_BEACON_ID = "invalid_beacon_id"
    BEACON_TOO_FAR = "beacon_too_far"
    SESSION_LOCATION_MISSING = "session_location_missing"
    CLAIM_LOCATION_MISSING = "claim_location_missing"
    OUT_OF_RANGE = "out_of_range"
    MISSING_STUDENT_ID = "missing_student_id"
    VERIFIED_PRESENT = "verified_present"
    INTERNAL_ERROR = "internal_error"
