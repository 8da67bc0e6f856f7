"""Core types and the verdict model."""

from proxyfail.core.types import AttendanceStatus, VerdictReason
from proxyfail.core.verdict import Verdict

__all__ = [
    "AttendanceStatus",
    "VerdictReason",
    "Verdict",
]
