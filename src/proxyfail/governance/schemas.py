"""Governance schemas - type definitions for the verdict audit trail.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class AuditEntry(BaseModel):
    """A single immutable audit log entry.

    Mirrors one verdict for later dispute resolution. Written once by the
    verifier, never mutated.
    """
    entry_id: str = Field(
        default_factory=lambda: f"aud_{uuid4().hex[:12]}",
        description="Unique entry identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the entry was created"
    )

    # Core identifiers
    attendance_id: str = Field(
        ...,
        description="Claim the verdict belongs to"
    )
    session_id: Optional[str] = Field(
        default=None,
        description="Session referenced by the claim"
    )
    student_id: Optional[str] = Field(
        default=None,
        description="Resolved student identity (accepted claims only)"
    )

    # Verdict
    status: str = Field(
        ...,
        description="Terminal claim status: present or rejected"
    )
    reason: str = Field(
        ...,
        description="Verdict reason code"
    )
    evidence: Dict[str, Any] = Field(
        default_factory=dict,
        description="Numeric evidence (distanceMeters, submittedRssi)"
    )
    error_details: Optional[str] = Field(
        default=None,
        description="Raw error detail for internal_error verdicts"
    )

    # Raw claim snapshot (for dispute resolution)
    claim: Dict[str, Any] = Field(
        default_factory=dict,
        description="Claim fields exactly as submitted"
    )

    # Governance
    rules_version: Optional[str] = Field(
        default=None,
        description="Verification rules version in effect"
    )

    # Integrity
    previous_hash: Optional[str] = Field(
        default=None,
        description="Hash of previous entry (for chain integrity)"
    )
    entry_hash: Optional[str] = Field(
        default=None,
        description="Hash of this entry"
    )

    # Metadata
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context"
    )

    def to_jsonl(self) -> str:
        """Serialize entry to JSONL format."""
        return json.dumps(self.model_dump(mode="json"), default=str)

    @classmethod
    def from_jsonl(cls, line: str) -> "AuditEntry":
        """Deserialize entry from JSONL format."""
        return cls.model_validate(json.loads(line))
