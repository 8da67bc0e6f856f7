"""Session schema - canonical definition.

Field aliases are the persisted record shape shared with the teacher app
and the storage layer. Python code uses the snake_case attribute names.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from proxyfail.common.constants import BeaconConstants, GeoConstants


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so window comparisons never mix kinds."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GeoPoint(BaseModel):
    """Reference coordinate. Either side may be missing in malformed records."""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @property
    def has_coordinates(self) -> bool:
        """True when both coordinates are present and finite."""
        return all(
            v is not None and math.isfinite(v)
            for v in (self.latitude, self.longitude)
        )


class Session(BaseModel):
    """Session entity schema.

    A single class meeting's attendance window: the current valid token,
    its validity window and the geofence/beacon parameters.
    """
    session_id: str = Field(..., alias="sessionId", description="Unique session identifier")
    token: str = Field(..., description="Current one-time credential")
    token_issued_at: datetime = Field(..., alias="tokenIssuedAt")
    token_expires_at: Optional[datetime] = Field(default=None, alias="tokenExpiresAt")
    created_at: datetime = Field(..., alias="createdAt", description="Session start time")
    location: Optional[GeoPoint] = Field(default=None, description="Reference coordinate")
    allowed_radius_meters: float = Field(
        default=GeoConstants.DEFAULT_ALLOWED_RADIUS_METERS,
        alias="allowedRadiusMeters",
        ge=0,
    )
    required_beacon_id: Optional[str] = Field(default=None, alias="requiredBeaconId")
    min_required_rssi: float = Field(
        default=BeaconConstants.DEFAULT_MIN_REQUIRED_RSSI,
        alias="minRequiredRssi",
    )
    is_active: bool = Field(default=True, alias="isActive")

    # Descriptive fields
    course_id: Optional[str] = Field(default=None, alias="courseId")
    teacher_id: Optional[str] = Field(default=None, alias="teacherId")

    # Written by rotation, reaping and manual end
    last_rotated: Optional[datetime] = Field(default=None, alias="lastRotated")
    ended_at: Optional[datetime] = Field(default=None, alias="endedAt")
    auto_ended: bool = Field(default=False, alias="autoEnded")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "sessionId": "ses_abc123",
                "token": "QR-TEST123",
                "tokenIssuedAt": "2026-10-19T09:00:00Z",
                "tokenExpiresAt": "2026-10-19T09:05:00Z",
                "createdAt": "2026-10-19T09:00:00Z",
                "location": {"latitude": 19.0760, "longitude": 72.8777},
                "allowedRadiusMeters": 50,
                "requiredBeaconId": None,
                "minRequiredRssi": -85,
                "isActive": True,
                "courseId": "CS401-FALL25",
            }
        },
    }

    @field_validator("allowed_radius_meters", mode="before")
    @classmethod
    def _default_radius(cls, v: Any) -> Any:
        return GeoConstants.DEFAULT_ALLOWED_RADIUS_METERS if v is None else v

    @field_validator("min_required_rssi", mode="before")
    @classmethod
    def _default_rssi(cls, v: Any) -> Any:
        return BeaconConstants.DEFAULT_MIN_REQUIRED_RSSI if v is None else v

    @field_validator(
        "token_issued_at", "token_expires_at", "created_at",
        "last_rotated", "ended_at",
    )
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    def effective_expiry(self, fallback_window: timedelta) -> datetime:
        """Token expiry, or issuance plus the fallback window when absent."""
        if self.token_expires_at is not None:
            return self.token_expires_at
        return self.token_issued_at + fallback_window

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted record shape."""
        return self.model_dump(mode="json", by_alias=True)
