"""Store module - persistence for sessions and attendance claims.

Components:
- SessionStore / AttendanceStore: Abstract base classes
- InMemorySessionStore / InMemoryAttendanceStore: Local and test backends
- DynamoDBSessionStore / DynamoDBAttendanceStore: boto3 backends (proxyfail.store.dynamodb)
"""

from proxyfail.store.base import (
    AttendanceStore,
    FieldUpdates,
    SessionStore,
)
from proxyfail.store.memory import InMemoryAttendanceStore, InMemorySessionStore
from proxyfail.store.factory import create_attendance_store, create_session_store

__all__ = [
    "AttendanceStore",
    "FieldUpdates",
    "SessionStore",
    "InMemoryAttendanceStore",
    "InMemorySessionStore",
    "create_attendance_store",
    "create_session_store",
]
