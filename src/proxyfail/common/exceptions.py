"""Custom exceptions for ProxyFail.

Provides a hierarchy of exceptions for different error types.
All ProxyFail exceptions inherit from ProxyFailException.

Verdict reasons (invalid_qr, out_of_range, ...) are NOT exceptions. They are
the designed output of the verifier and live in proxyfail.core.types.
"""

from typing import Any, Dict, Optional


class ProxyFailException(Exception):
    """Base exception for all ProxyFail errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: str = "PROXYFAIL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ProxyFailException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(ProxyFailException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class SessionStoreError(ProxyFailException):
    """Raised when a session or attendance store operation fails."""

    def __init__(
        self,
        message: str,
        operation: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["operation"] = operation
        super().__init__(message, code="STORE_ERROR", details=details)


class SessionNotFoundError(ProxyFailException):
    """Raised when an operation targets a session that does not exist."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session not found: {session_id}",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class ClaimNotFoundError(ProxyFailException):
    """Raised when an attendance claim does not exist."""

    def __init__(self, attendance_id: str):
        super().__init__(
            f"Attendance claim not found: {attendance_id}",
            code="CLAIM_NOT_FOUND",
            details={"attendance_id": attendance_id},
        )


class AuditError(ProxyFailException):
    """Raised when audit logging fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="AUDIT_ERROR", details=details)

