"""End-to-end tests: session lifecycle, claims, sweeps and the audit trail.

Runs the real service stack against in-memory stores and a file audit log,
advancing a controllable clock.
"""

from datetime import timedelta

import pytest

from proxyfail.api.service import AttendanceService
from proxyfail.core import AttendanceStatus
from proxyfail.governance.audit import AuditLogger, FileAuditStore
from proxyfail.store import InMemoryAttendanceStore, InMemorySessionStore
from tests.fixtures.sessions import (
    CLASSROOM_LAT,
    CLASSROOM_LON,
    NOW,
    TEST_TOKEN,
    make_claim,
    north_of,
)


class Clock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock(NOW)


@pytest.fixture
def service(clock, audit_dir):
    service = AttendanceService(
        session_store=InMemorySessionStore(),
        attendance_store=InMemoryAttendanceStore(),
        audit_logger=AuditLogger(store=FileAuditStore(log_dir=audit_dir), rules_version="1.0.0"),
        clock=clock,
    )
    yield service
    service.shutdown()


def claim_for(session, attendance_id, **overrides):
    fields = dict(
        attendance_id=attendance_id,
        session_id=session.session_id,
        scanned_token=session.token,
    )
    fields.update(overrides)
    return make_claim(**fields)


class TestClassroomScenario:
    """The classroom walk-through from session open to reaping."""

    def test_full_lifecycle(self, service, clock):
        session = service.create_session(
            CLASSROOM_LAT, CLASSROOM_LON, token=TEST_TOKEN, course_id="CS401-FALL25"
        )

        # Student in the room
        present = service.submit_claim(claim_for(session, "att_in_room"))
        assert present.status == AttendanceStatus.PRESENT
        assert present.distance_meters == 0

        # Student 200 m away
        far = service.submit_claim(
            claim_for(session, "att_far", latitude=north_of(CLASSROOM_LAT, 200))
        )
        assert far.reason == "out_of_range"
        assert far.distance_meters == 200

        # Token rotates; a screenshot of the old QR no longer works
        clock.advance(minutes=5)
        assert service.rotator.run_once().affected == 1
        rotated = service.session_store.get(session.session_id)
        assert rotated.token != TEST_TOKEN

        stale = service.submit_claim(claim_for(session, "att_stale_qr"))
        assert stale.reason == "invalid_qr"

        fresh = service.submit_claim(
            claim_for(rotated, "att_fresh_qr", student_id="stu_002")
        )
        assert fresh.status == AttendanceStatus.PRESENT

        # The reaper ends the session after two hours
        clock.advance(hours=2)
        assert service.reaper.run_once().affected == 1
        ended = service.session_store.get(session.session_id)
        assert ended.is_active is False
        assert ended.auto_ended is True

        late = service.submit_claim(claim_for(ended, "att_late"))
        assert late.reason == "session_inactive"

        # Every verdict is in the audit trail, chain intact
        reasons = {e.attendance_id: e.reason for e in service.audit_logger.get_entries()}
        assert reasons == {
            "att_in_room": "verified_present",
            "att_far": "out_of_range",
            "att_stale_qr": "invalid_qr",
            "att_fresh_qr": "verified_present",
            "att_late": "session_inactive",
        }
        assert service.audit_logger.verify_integrity() is True

    def test_token_expires_without_rotation(self, service, clock):
        session = service.create_session(CLASSROOM_LAT, CLASSROOM_LON)

        clock.advance(minutes=5)
        on_time = service.submit_claim(claim_for(session, "att_on_time"))
        clock.advance(milliseconds=1)
        late = service.submit_claim(claim_for(session, "att_late"))

        assert on_time.status == AttendanceStatus.PRESENT
        assert late.reason == "session_expired"

    def test_beacon_session(self, service):
        session = service.create_session(
            CLASSROOM_LAT, CLASSROOM_LON, required_beacon_id="BEACON-42"
        )

        weak = service.submit_claim(claim_for(
            session, "att_weak", scanned_beacon_id="BEACON-42", beacon_rssi=-95
        ))
        strong = service.submit_claim(claim_for(
            session, "att_strong", scanned_beacon_id="BEACON-42", beacon_rssi=-60
        ))

        assert weak.reason == "beacon_too_far"
        assert weak.submitted_rssi == -95
        assert strong.status == AttendanceStatus.PRESENT
        assert strong.submitted_rssi == -60

    def test_every_claim_reaches_terminal_state(self, service):
        session = service.create_session(CLASSROOM_LAT, CLASSROOM_LON)
        variants = [
            {},
            {"scanned_token": None},
            {"session_id": None},
            {"session_id": "ses_unknown"},
            {"device_integrity": None},
            {"mock_location_detected": True},
            {"latitude": None},
            {"student_id": None},
        ]

        for i, overrides in enumerate(variants):
            result = service.submit_claim(claim_for(session, f"att_{i}", **overrides))
            assert result.status.is_terminal
            assert result.reason is not None
