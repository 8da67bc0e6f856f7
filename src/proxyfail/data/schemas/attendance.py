"""Attendance claim schema - canonical definition."""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, StrictBool, field_validator

from proxyfail.core.types import AttendanceStatus
from proxyfail.data.schemas.session import ensure_utc


def is_number(value: Any) -> bool:
    """True for finite int/float values. bool is not a number here."""
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class Attendance(BaseModel):
    """Attendance claim entity schema.

    Created by the student-facing submission path in the PENDING state and
    written exactly once by the verifier with a terminal status.
    """
    attendance_id: str = Field(
        default_factory=lambda: f"att_{uuid4().hex[:12]}",
        alias="attendanceId",
    )
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    scanned_token: Optional[str] = Field(default=None, alias="scannedToken")
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    scanned_beacon_id: Optional[str] = Field(default=None, alias="scannedBeaconId")
    beacon_rssi: Optional[float] = Field(default=None, alias="beaconRssi")
    mock_location_detected: Optional[StrictBool] = Field(default=None, alias="mockLocationDetected")
    device_integrity: Optional[StrictBool] = Field(default=None, alias="deviceIntegrity")
    student_id: Optional[str] = Field(default=None, alias="studentId")
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="submittedAt",
    )

    # Verdict fields
    status: AttendanceStatus = Field(default=AttendanceStatus.PENDING)
    reason: Optional[str] = Field(default=None)
    distance_meters: Optional[int] = Field(default=None, alias="distanceMeters")
    submitted_rssi: Optional[float] = Field(default=None, alias="submittedRssi")
    verified_at: Optional[datetime] = Field(default=None, alias="verifiedAt")
    error_details: Optional[str] = Field(default=None, alias="errorDetails")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "attendanceId": "att_abc123",
                "sessionId": "ses_abc123",
                "scannedToken": "QR-TEST123",
                "latitude": 19.0760,
                "longitude": 72.8777,
                "scannedBeaconId": None,
                "beaconRssi": None,
                "mockLocationDetected": False,
                "deviceIntegrity": True,
                "studentId": "stu_001",
            }
        },
    }

    # Client values that are not the expected JSON type count as absent
    @field_validator(
        "session_id", "scanned_token", "scanned_beacon_id", "student_id", mode="before"
    )
    @classmethod
    def _str_or_none(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("mock_location_detected", "device_integrity", mode="before")
    @classmethod
    def _bool_or_none(cls, v: Any) -> Optional[bool]:
        return v if isinstance(v, bool) else None

    @field_validator("beacon_rssi", mode="before")
    @classmethod
    def _number_or_none(cls, v: Any) -> Optional[float]:
        return v if is_number(v) else None

    @field_validator("latitude", mode="before")
    @classmethod
    def _latitude(cls, v: Any) -> Optional[float]:
        return v if is_number(v) and -90 <= v <= 90 else None

    @field_validator("longitude", mode="before")
    @classmethod
    def _longitude(cls, v: Any) -> Optional[float]:
        return v if is_number(v) and -180 <= v <= 180 else None

    @field_validator("submitted_at", "verified_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def has_coordinates(self) -> bool:
        return all(
            v is not None and math.isfinite(v)
            for v in (self.latitude, self.longitude)
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self) -> Dict[str, Any]:
        """Raw claim fields as submitted, for the audit trail."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={
                "attendance_id", "session_id", "scanned_token",
                "latitude", "longitude", "scanned_beacon_id", "beacon_rssi",
                "mock_location_detected", "device_integrity", "student_id",
                "submitted_at",
            },
        )

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted record shape."""
        return self.model_dump(mode="json", by_alias=True)
