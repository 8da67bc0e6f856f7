"""API Gateway - FastAPI application for sessions and attendance claims."""

import logging, os, threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional
from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proxyfail.api.schemas import (
    AttendanceResponse,
    CreateSessionRequest,
    ErrorResponse,
    SessionResponse,
    SubmitClaimRequest,
)
from proxyfail.api.service import AttendanceService
from proxyfail.common.config import get_config
from proxyfail.common.exceptions import (
    ClaimNotFoundError,
    SessionNotFoundError,
    ValidationError,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("proxyfail_api")


class ServiceManager:
    """Thread-safe service singleton manager."""

    _instance: Optional[AttendanceService] = None
    _lock = threading.Lock()
    _initialized = False

    @classmethod
    def get_service(cls) -> AttendanceService:
        """Get or create the attendance service instance (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = AttendanceService()
                    cls._initialized = True
                    logger.info("AttendanceService initialized")
        return cls._instance

    @classmethod
    def set_service(cls, service: AttendanceService) -> None:
        """Install a pre-built service (tests, embedding)."""
        with cls._lock:
            cls._instance = service
            cls._initialized = True

    @classmethod
    def shutdown(cls) -> None:
        """Shutdown the service and release resources."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
                cls._instance = None
                cls._initialized = False

                logger.info("AttendanceService shutdown complete")


def get_service() -> AttendanceService:
    """Get the attendance service instance."""
    return ServiceManager.get_service()


# =============================================================================
# CORS CONFIGURATION
# =============================================================================

def get_cors_origins() -> List[str]:
    """Get allowed CORS origins from environment.

    In production, set PROXYFAIL_CORS_ORIGINS to a comma-separated list of
    allowed origins (the teacher and student apps).
    """
    origins_env = os.environ.get("PROXYFAIL_CORS_ORIGINS", "")

    if origins_env:
        return [origin.strip() for origin in origins_env.split(",") if origin.strip()]

    if os.environ.get("PROXYFAIL_ENVIRONMENT", "development") == "production":
        logger.warning(
            "PROXYFAIL_CORS_ORIGINS not set in production. "
            "CORS will be disabled. Set PROXYFAIL_CORS_ORIGINS for cross-origin access."
        )
        return []

    logger.warning("Running in development mode with permissive CORS (allow_origins=['*'])")
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("ProxyFail API Gateway starting up...")
    service = get_service()
    if get_config().enable_sweeps:
        service.start_sweeps()
    logger.info("ProxyFail API Gateway ready")

    yield

    # Shutdown
    logger.info("ProxyFail API Gateway shutting down...")
    ServiceManager.shutdown()
    logger.info("ProxyFail API Gateway shutdown complete")


# Create FastAPI application
environment = os.environ.get("PROXYFAIL_ENVIRONMENT", "development")
enable_docs_default = "false" if environment == "production" else "true"
enable_docs = os.environ.get("PROXYFAIL_ENABLE_DOCS", enable_docs_default).lower() == "true"

app = FastAPI(
    title="ProxyFail API Gateway",
    description="Attendance presence verification API.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if enable_docs else None,
    redoc_url="/redoc" if enable_docs else None,
)


cors_origins = get_cors_origins()
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "GET"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID", "X-Caller-Id"],
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error_response(
    request: Request, status_code: int, error: str, message: str
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=request_id,
        ).model_dump(),
    )


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(
    request: Request, exc: SessionNotFoundError
) -> JSONResponse:
    """Handle unknown session ids."""
    return _error_response(request, 404, "session_not_found", exc.message)


@app.exception_handler(ClaimNotFoundError)
async def claim_not_found_handler(
    request: Request, exc: ClaimNotFoundError
) -> JSONResponse:
    """Handle unknown attendance ids."""
    return _error_response(request, 404, "claim_not_found", exc.message)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle domain validation errors."""
    logger.warning(f"Validation error: {exc.message}")
    return _error_response(request, 400, "validation_error", exc.message)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle validation errors."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(request, 400, "validation_error", str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors.

    Logs full exception for debugging but returns sanitized message to client.
    """
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unexpected error",
        extra={"request_id": request_id, "error_type": type(exc).__name__}
    )
    return _error_response(request, 500, "internal_error", "An unexpected error occurred")


# =============================================================================
# MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to each request for tracing."""
    request_id = f"req_{uuid4().hex[:12]}"
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Open an attendance session",
)
def create_session(request: CreateSessionRequest) -> SessionResponse:
    """Create an active session with an initial token window."""
    service = get_service()
    session = service.create_session(**request.model_dump())
    return SessionResponse.from_session(session)


@app.post(
    "/sessions/{session_id}/end",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="End an attendance session",
)
def end_session(session_id: str) -> SessionResponse:
    """Mark a session inactive (manual end)."""
    session = get_service().end_session(session_id)
    return SessionResponse.from_session(session)


@app.post(
    "/attendance",
    response_model=AttendanceResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Submit an attendance claim",
    description=(
        "Persists the claim and verifies it immediately. The response carries "
        "the terminal status (present or rejected) and the reason code. "
        "The optional X-Caller-Id header takes precedence over studentId."
    ),
)
def submit_attendance(
    request: SubmitClaimRequest,
    x_caller_id: Optional[str] = Header(default=None),
) -> AttendanceResponse:
    """Submit and verify one attendance claim."""
    service = get_service()
    claim = request.to_claim()
    logger.info(
        f"Received claim {claim.attendance_id} for session {claim.session_id}"
    )
    result = service.submit_claim(claim, caller_id=x_caller_id)
    return AttendanceResponse.from_claim(result)


@app.get(
    "/attendance/{attendance_id}",
    response_model=AttendanceResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Read an attendance claim",
)
def get_attendance(attendance_id: str) -> AttendanceResponse:
    """Return the current state of a claim."""
    return AttendanceResponse.from_claim(get_service().get_claim(attendance_id))


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "service": "proxyfail-gateway"}


@app.get("/ready")
async def readiness_check() -> dict:
    """Readiness check endpoint.

    Returns 503 until the service singleton is initialized.
    """
    if not ServiceManager._initialized:
        raise HTTPException(status_code=503, detail="not_ready")
    return {"status": "ready", "service": "proxyfail-gateway"}


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "proxyfail.api.gateway:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
