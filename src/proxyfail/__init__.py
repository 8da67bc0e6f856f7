"""ProxyFail - Attendance Presence Verification."""

__version__ = "0.1.0"
__author__ = "ProxyFail Team"

# Core exports
from proxyfail.core.types import AttendanceStatus, VerdictReason
from proxyfail.core.verdict import Verdict

__all__ = [
    "AttendanceStatus",
    "VerdictReason",
    "Verdict",
]
