"""Verdict - the terminal classification of one attendance claim."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from proxyfail.core.types import AttendanceStatus, VerdictReason


class Verdict(BaseModel):
    """Immutable verifier output.

    Carries the reason code plus whatever numeric evidence the rule chain
    accumulated before it terminated.
    """
    attendance_id: str = Field(..., description="Claim this verdict belongs to")
    session_id: Optional[str] = Field(default=None)
    status: AttendanceStatus = Field(..., description="present or rejected")
    reason: VerdictReason = Field(..., description="Reason code")
    distance_meters: Optional[int] = Field(
        default=None, ge=0, description="Rounded distance to the session location"
    )
    submitted_rssi: Optional[float] = Field(
        default=None, description="Beacon signal strength reported by the claim"
    )
    student_id: Optional[str] = Field(
        default=None, description="Resolved student identity (accepted claims only)"
    )
    verified_at: Optional[datetime] = Field(default=None)
    decided_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error_details: Optional[str] = Field(default=None)

    model_config = {"frozen": True}

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT

    @property
    def evidence(self) -> Dict[str, Any]:
        """Numeric evidence in record-field names, omitting what was never measured."""
        evidence: Dict[str, Any] = {}
        if self.distance_meters is not None:
            evidence["distanceMeters"] = self.distance_meters
        if self.submitted_rssi is not None:
            evidence["submittedRssi"] = self.submitted_rssi
        return evidence

    def to_claim_fields(self) -> Dict[str, Any]:
        """Field updates that move the claim record into its terminal state."""
        fields: Dict[str, Any] = {
            "status": self.status.value,
            "reason": self.reason.value,
            **self.evidence,
        }
        if self.is_present:
            fields["verifiedAt"] = self.verified_at
            fields["studentId"] = self.student_id
        if self.error_details is not None:
            fields["errorDetails"] = self.error_details
        return fields
