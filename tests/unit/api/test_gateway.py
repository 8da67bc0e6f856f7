"""Tests for the API Gateway.

These tests verify that:
1. Sessions can be opened and ended over HTTP
2. Claims are verified on submission and readable afterwards
3. Error handling returns the standard error body
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from proxyfail.api.gateway import ServiceManager, app
from proxyfail.api.service import AttendanceService
from proxyfail.governance.audit import AuditLogger, FileAuditStore
from proxyfail.store import InMemoryAttendanceStore, InMemorySessionStore
from tests.fixtures.sessions import CLASSROOM_LAT, CLASSROOM_LON, NOW, TEST_TOKEN, north_of


@pytest.fixture
def service(audit_dir):
    return AttendanceService(
        session_store=InMemorySessionStore(),
        attendance_store=InMemoryAttendanceStore(),
        audit_logger=AuditLogger(store=FileAuditStore(log_dir=audit_dir)),
        clock=lambda: NOW,
    )


@pytest.fixture
def client(service):
    """Create a test client bound to an in-memory service."""
    ServiceManager.set_service(service)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    ServiceManager.shutdown()


@pytest.fixture
def open_session(client) -> dict:
    response = client.post("/sessions", json={
        "latitude": CLASSROOM_LAT,
        "longitude": CLASSROOM_LON,
        "token": TEST_TOKEN,
        "courseId": "CS401-FALL25",
    })
    assert response.status_code == 201
    return response.json()


def claim_body(session_id: str, **overrides) -> dict:
    body = {
        "sessionId": session_id,
        "scannedToken": TEST_TOKEN,
        "latitude": CLASSROOM_LAT,
        "longitude": CLASSROOM_LON,
        "mockLocationDetected": False,
        "deviceIntegrity": True,
        "studentId": "stu_001",
    }
    body.update(overrides)
    return body


class TestHealthEndpoints:
    """Tests for /health and /ready."""

    def test_health_check_returns_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_after_startup(self, client):
        assert client.get("/ready").status_code == 200

    def test_request_id_header(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"].startswith("req_")


class TestSessionEndpoints:
    """Tests for session lifecycle endpoints."""

    def test_create_session(self, open_session):
        assert open_session["sessionId"].startswith("ses_")
        assert open_session["token"] == TEST_TOKEN
        assert open_session["isActive"] is True
        assert open_session["allowedRadiusMeters"] == 50
        assert open_session["courseId"] == "CS401-FALL25"
        issued = datetime.fromisoformat(open_session["tokenIssuedAt"].replace("Z", "+00:00"))
        expires = datetime.fromisoformat(open_session["tokenExpiresAt"].replace("Z", "+00:00"))
        assert (expires - issued).total_seconds() == 300

    def test_create_session_generates_token(self, client):
        response = client.post("/sessions", json={"latitude": 0, "longitude": 0})
        assert response.status_code == 201
        assert len(response.json()["token"]) == 8

    def test_create_session_invalid_coordinates(self, client):
        response = client.post("/sessions", json={"latitude": 100, "longitude": 0})
        assert response.status_code == 422

    def test_create_duplicate_session(self, client, open_session):
        response = client.post("/sessions", json={
            "latitude": 0,
            "longitude": 0,
            "sessionId": open_session["sessionId"],
        })

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_end_session(self, client, open_session):
        response = client.post(f"/sessions/{open_session['sessionId']}/end")

        assert response.status_code == 200
        body = response.json()
        assert body["isActive"] is False
        assert body["autoEnded"] is False
        assert body["endedAt"] is not None

    def test_end_unknown_session(self, client):
        response = client.post("/sessions/ses_missing/end")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "session_not_found"
        assert body["request_id"].startswith("req_")


class TestAttendanceEndpoints:
    """Tests for claim submission and lookup."""

    def test_present_at_classroom(self, client, open_session):
        response = client.post("/attendance", json=claim_body(open_session["sessionId"]))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "present"
        assert body["reason"] == "verified_present"
        assert body["distanceMeters"] == 0
        assert body["studentId"] == "stu_001"
        assert body["verifiedAt"] is not None

    def test_out_of_range(self, client, open_session):
        body = claim_body(open_session["sessionId"], latitude=north_of(CLASSROOM_LAT, 200))

        response = client.post("/attendance", json=body)

        assert response.json()["status"] == "rejected"
        assert response.json()["reason"] == "out_of_range"
        assert response.json()["distanceMeters"] == 200

    def test_caller_header_overrides_student_id(self, client, open_session):
        response = client.post(
            "/attendance",
            json=claim_body(open_session["sessionId"]),
            headers={"X-Caller-Id": "uid_authenticated"},
        )
        assert response.json()["studentId"] == "uid_authenticated"

    def test_claim_without_session(self, client):
        response = client.post("/attendance", json={"scannedToken": TEST_TOKEN})

        assert response.status_code == 200
        assert response.json()["reason"] == "missing_session_id"

    def test_claim_after_end_is_inactive(self, client, open_session):
        client.post(f"/sessions/{open_session['sessionId']}/end")

        response = client.post("/attendance", json=claim_body(open_session["sessionId"]))

        assert response.json()["reason"] == "session_inactive"

    def test_get_claim(self, client, open_session):
        submitted = client.post(
            "/attendance", json=claim_body(open_session["sessionId"])
        ).json()

        response = client.get(f"/attendance/{submitted['attendanceId']}")

        assert response.status_code == 200
        assert response.json() == submitted

    def test_get_unknown_claim(self, client):
        response = client.get("/attendance/att_missing")

        assert response.status_code == 404
        assert response.json()["error"] == "claim_not_found"

    def test_client_attendance_id_ignored(self, client, open_session):
        first = client.post("/attendance", json=claim_body(open_session["sessionId"])).json()
        body = claim_body(
            open_session["sessionId"], attendanceId=first["attendanceId"], scannedToken="WRONG"
        )

        second = client.post("/attendance", json=body).json()

        assert second["attendanceId"] != first["attendanceId"]
        assert second["reason"] == "invalid_qr"
        assert client.get(f"/attendance/{first['attendanceId']}").json() == first

    def test_non_boolean_integrity_rejected(self, client, open_session):
        body = claim_body(open_session["sessionId"], deviceIntegrity="yes")

        response = client.post("/attendance", json=body)

        assert response.status_code == 200
        assert response.json()["reason"] == "device_integrity_failed"

    def test_numeric_integrity_rejected(self, client, open_session):
        body = claim_body(open_session["sessionId"], deviceIntegrity=1, mockLocationDetected=0)
        response = client.post("/attendance", json=body)
        assert response.json()["reason"] == "device_integrity_failed"

    def test_string_rssi_is_missing_beacon_data(self, client):
        session = client.post("/sessions", json={
            "latitude": CLASSROOM_LAT,
            "longitude": CLASSROOM_LON,
            "token": TEST_TOKEN,
            "requiredBeaconId": "BEACON-42",
        }).json()
        body = claim_body(session["sessionId"], scannedBeaconId="BEACON-42", beaconRssi="-60")

        response = client.post("/attendance", json=body)

        assert response.json()["status"] == "rejected"
        assert response.json()["reason"] == "beacon_data_missing"

    def test_out_of_range_latitude_reaches_verifier(self, client, open_session):
        body = claim_body(open_session["sessionId"], latitude=95)

        response = client.post("/attendance", json=body)

        assert response.status_code == 200
        assert response.json()["reason"] == "claim_location_missing"

    def test_unexpected_error_is_sanitized(self, client, service):
        with patch.object(service, "get_claim", side_effect=RuntimeError("secret detail")):
            response = client.get("/attendance/att_any")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_error"
        assert "secret detail" not in body["message"]
