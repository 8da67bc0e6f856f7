"""In-memory stores for local development and tests.

Records are kept in their persisted (camelCase) shape and validated on
every read, the same way a document database round-trips them.
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

from proxyfail.common.exceptions import SessionNotFoundError, SessionStoreError
from proxyfail.data.schemas import Attendance, Session
from proxyfail.store.base import (
    AttendanceStore,
    FieldUpdates,
    SessionStore,
    serialize_fields,
)

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Thread-safe dict-backed session store."""

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            record = copy.deepcopy(self._records.get(session_id))
        if record is None:
            return None
        return Session.model_validate(record)

    def query_active(self) -> List[Session]:
        with self._lock:
            records = [
                copy.deepcopy(r) for r in self._records.values()
                if r.get("isActive") is True
            ]
        return [Session.model_validate(r) for r in records]

    def put(self, session: Session) -> Session:
        with self._lock:
            self._records[session.session_id] = session.to_record()
        return session

    def put_raw(self, session_id: str, record: Dict[str, Any]) -> None:
        """Store an unvalidated record as-is (simulates foreign writers)."""
        with self._lock:
            self._records[session_id] = copy.deepcopy(record)

    def get_raw(self, session_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._records.get(session_id))

    def update_one(self, session_id: str, fields: FieldUpdates) -> None:
        with self._lock:
            if session_id not in self._records:
                raise SessionNotFoundError(session_id)
            self._records[session_id].update(serialize_fields(fields))

    def batch_update(self, updates: Sequence[Tuple[str, FieldUpdates]]) -> None:
        with self._lock:
            missing = [sid for sid, _ in updates if sid not in self._records]
            if missing:
                raise SessionStoreError(
                    f"Batch aborted, {len(missing)} session(s) not found",
                    operation="batch_update",
                    details={"missing": missing},
                )
            for session_id, fields in updates:
                self._records[session_id].update(serialize_fields(fields))
        logger.debug(f"Committed batch of {len(updates)} session updates")

    def __len__(self) -> int:
        return len(self._records)


class InMemoryAttendanceStore(AttendanceStore):
    """Thread-safe dict-backed attendance store."""

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, attendance_id: str) -> Optional[Attendance]:
        with self._lock:
            record = copy.deepcopy(self._records.get(attendance_id))
        if record is None:
            return None
        return Attendance.model_validate(record)

    def put(self, claim: Attendance) -> Attendance:
        with self._lock:
            self._records[claim.attendance_id] = claim.to_record()
        return claim

    def update(self, attendance_id: str, fields: FieldUpdates) -> None:
        with self._lock:
            if attendance_id not in self._records:
                raise SessionStoreError(
                    f"Attendance record not found: {attendance_id}",
                    operation="update",
                    details={"attendance_id": attendance_id},
                )
            self._records[attendance_id].update(serialize_fields(fields))
