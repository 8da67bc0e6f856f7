"""API Schemas - Request/Response models for the API Gateway.

Bodies use the same camelCase field names as the persisted records.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from proxyfail.core import AttendanceStatus
from proxyfail.data.schemas import Attendance, Session

_API_MODEL_CONFIG = {"populate_by_name": True}


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request body for POST /sessions."""
    latitude: float = Field(..., ge=-90, le=90, description="Classroom latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Classroom longitude")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    token: Optional[str] = Field(
        default=None, min_length=1, description="Initial token. Generated if omitted"
    )
    allowed_radius_meters: Optional[float] = Field(
        default=None, gt=0, alias="allowedRadiusMeters"
    )
    required_beacon_id: Optional[str] = Field(default=None, alias="requiredBeaconId")
    min_required_rssi: Optional[float] = Field(default=None, le=0, alias="minRequiredRssi")
    course_id: Optional[str] = Field(default=None, alias="courseId")
    teacher_id: Optional[str] = Field(default=None, alias="teacherId")

    model_config = {
        **_API_MODEL_CONFIG,
        "json_schema_extra": {
            "example": {
                "latitude": 19.0760,
                "longitude": 72.8777,
                "token": "QR-TEST123",
                "allowedRadiusMeters": 50,
                "courseId": "CS401-FALL25",
                "teacherId": "teacher_001",
            }
        },
    }


class SubmitClaimRequest(BaseModel):
    """Request body for POST /attendance.

    Every field is optional; malformed claims are rejected by the verifier
    with a specific reason rather than at the HTTP layer. Fields are taken
    as raw JSON values; one of the wrong type reaches the verifier as
    missing.

    The attendance id is always assigned by the server.
    """
    session_id: Optional[Any] = Field(default=None, alias="sessionId")
    scanned_token: Optional[Any] = Field(default=None, alias="scannedToken")
    latitude: Optional[Any] = Field(default=None, description="Degrees, -90..90")
    longitude: Optional[Any] = Field(default=None, description="Degrees, -180..180")
    scanned_beacon_id: Optional[Any] = Field(default=None, alias="scannedBeaconId")
    beacon_rssi: Optional[Any] = Field(default=None, alias="beaconRssi", description="dBm")
    mock_location_detected: Optional[Any] = Field(
        default=None, alias="mockLocationDetected", description="JSON boolean"
    )
    device_integrity: Optional[Any] = Field(
        default=None, alias="deviceIntegrity", description="Only JSON true passes"
    )
    student_id: Optional[Any] = Field(default=None, alias="studentId")

    model_config = {
        **_API_MODEL_CONFIG,
        "json_schema_extra": {
            "example": {
                "sessionId": "ses_abc123",
                "scannedToken": "QR-TEST123",
                "latitude": 19.0760,
                "longitude": 72.8777,
                "mockLocationDetected": False,
                "deviceIntegrity": True,
                "studentId": "stu_001",
            }
        },
    }

    def to_claim(self) -> Attendance:
        """Build a pending claim with a fresh server-assigned id."""
        fields = self.model_dump(exclude_none=True)
        return Attendance(**fields)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class SessionResponse(BaseModel):
    """Session as returned to the teacher app."""
    session_id: str = Field(..., alias="sessionId")
    token: str
    token_issued_at: datetime = Field(..., alias="tokenIssuedAt")
    token_expires_at: Optional[datetime] = Field(default=None, alias="tokenExpiresAt")
    created_at: datetime = Field(..., alias="createdAt")
    is_active: bool = Field(..., alias="isActive")
    allowed_radius_meters: float = Field(..., alias="allowedRadiusMeters")
    required_beacon_id: Optional[str] = Field(default=None, alias="requiredBeaconId")
    course_id: Optional[str] = Field(default=None, alias="courseId")
    ended_at: Optional[datetime] = Field(default=None, alias="endedAt")
    auto_ended: bool = Field(default=False, alias="autoEnded")

    model_config = _API_MODEL_CONFIG

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls.model_validate(session.model_dump())


class AttendanceResponse(BaseModel):
    """Claim state returned by POST /attendance and GET /attendance/{id}."""
    attendance_id: str = Field(..., alias="attendanceId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    status: AttendanceStatus = Field(..., description="pending, present or rejected")
    reason: Optional[str] = Field(default=None, description="Verdict reason code")
    distance_meters: Optional[int] = Field(default=None, alias="distanceMeters")
    submitted_rssi: Optional[float] = Field(default=None, alias="submittedRssi")
    student_id: Optional[str] = Field(default=None, alias="studentId")
    verified_at: Optional[datetime] = Field(default=None, alias="verifiedAt")

    model_config = {
        **_API_MODEL_CONFIG,
        "json_schema_extra": {
            "example": {
                "attendanceId": "att_a1b2c3d4e5f6",
                "sessionId": "ses_abc123",
                "status": "present",
                "reason": "verified_present",
                "distanceMeters": 0,
                "studentId": "stu_001",
                "verifiedAt": "2026-10-19T09:01:00Z",
            }
        },
    }

    @classmethod
    def from_claim(cls, claim: Attendance) -> "AttendanceResponse":
        return cls.model_validate(claim.model_dump())


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    request_id: Optional[str] = Field(
        default=None, description="Request ID for debugging"
    )
