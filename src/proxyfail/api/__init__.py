"""API - attendance service and endpoints.

Endpoints:
    POST /sessions
    POST /sessions/{session_id}/end
    POST /attendance
    GET  /attendance/{attendance_id}
"""

from proxyfail.api.gateway import app
from proxyfail.api.schemas import (
    AttendanceResponse,
    CreateSessionRequest,
    ErrorResponse,
    SessionResponse,
    SubmitClaimRequest,
)
from proxyfail.api.service import AttendanceService

__all__ = [
    "app",
    "AttendanceResponse",
    "CreateSessionRequest",
    "ErrorResponse",
    "SessionResponse",
    "SubmitClaimRequest",
    "AttendanceService",
]
