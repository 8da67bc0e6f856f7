"""Shared pytest fixtures."""

import tempfile

import pytest

from proxyfail.common.config import reset_config
from proxyfail.governance.audit import AuditLogger, FileAuditStore
from proxyfail.store import InMemoryAttendanceStore, InMemorySessionStore
from tests.fixtures.sessions import NOW, make_claim, make_session


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep PROXYFAIL_* settings from leaking between tests."""
    monkeypatch.setenv("PROXYFAIL_ENABLE_SWEEPS", "false")
    reset_config()
    yield
    reset_config()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def claim():
    return make_claim()


@pytest.fixture
def session_store(session):
    store = InMemorySessionStore()
    store.put(session)
    return store


@pytest.fixture
def attendance_store():
    return InMemoryAttendanceStore()


@pytest.fixture
def audit_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def audit_logger(audit_dir):
    logger = AuditLogger(store=FileAuditStore(log_dir=audit_dir))
    yield logger
    logger.shutdown()
