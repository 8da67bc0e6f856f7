"""Store abstractions - persistence contracts for sessions and claims.

This module decouples the verifier and the sweeps from any specific
database. Field updates are keyed by the persisted (camelCase) record
names, e.g. {"isActive": False, "endedAt": now}.

Design principles:
- ABC-based interface for testability and extensibility
- Reads return validated schema objects; malformed records raise
- batch_update is all-or-nothing
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from proxyfail.data.schemas import Attendance, Session

FieldUpdates = Dict[str, Any]


def serialize_value(value: Any) -> Any:
    """Convert a Python value to its persisted representation."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def serialize_fields(fields: FieldUpdates) -> FieldUpdates:
    """Serialize every value of a field-update mapping."""
    return {name: serialize_value(value) for name, value in fields.items()}


class SessionStore(ABC):
    """Keyed store of Session records."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[Session]:
        """Fetch one session.

        Returns:
            The session, or None if no record matches

        Raises:
            SessionStoreError: If the backend is unavailable
        """
        pass

    @abstractmethod
    def query_active(self) -> List[Session]:
        """Return every session with isActive == True."""
        pass

    @abstractmethod
    def put(self, session: Session) -> Session:
        """Create or replace a session record."""
        pass

    @abstractmethod
    def update_one(self, session_id: str, fields: FieldUpdates) -> None:
        """Update fields of one existing session.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        pass

    @abstractmethod
    def batch_update(self, updates: Sequence[Tuple[str, FieldUpdates]]) -> None:
        """Apply several session updates atomically (all-or-nothing).

        Backends with a per-transaction item limit (DynamoDB: 100) commit
        larger batches as consecutive transactions. Atomicity then holds per
        transaction, and each session's fields are always written together.

        Raises:
            SessionStoreError: If the batch could not be committed. For a
                split batch, details["committed"] lists the session ids
                already applied; otherwise nothing is applied.
        """
        pass


class AttendanceStore(ABC):
    """Keyed store of Attendance claim records."""

    @abstractmethod
    def get(self, attendance_id: str) -> Optional[Attendance]:
        pass

    @abstractmethod
    def put(self, claim: Attendance) -> Attendance:
        pass

    @abstractmethod
    def update(self, attendance_id: str, fields: FieldUpdates) -> None:
        pass
