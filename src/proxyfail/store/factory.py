"""Store factories - pick a backend from Config."""

import logging
from typing import Optional

from proxyfail.common.config import Config, SessionStoreType, get_config
from proxyfail.store.base import AttendanceStore, SessionStore
from proxyfail.store.memory import InMemoryAttendanceStore, InMemorySessionStore

logger = logging.getLogger(__name__)


def create_session_store(config: Optional[Config] = None) -> SessionStore:
    """Create the session store configured by PROXYFAIL_SESSION_STORE_TYPE."""
    config = config or get_config()

    if config.session_store_type == SessionStoreType.DYNAMODB:
        from proxyfail.store.dynamodb import DynamoDBSessionStore

        return DynamoDBSessionStore(
            table_name=config.sessions_table,
            region=config.aws_region,
            aws_profile=config.aws_profile,
        )

    logger.warning("Using in-memory session store; records are not durable")
    return InMemorySessionStore()


def create_attendance_store(config: Optional[Config] = None) -> AttendanceStore:
    """Create the attendance store configured by PROXYFAIL_SESSION_STORE_TYPE."""
    config = config or get_config()

    if config.session_store_type == SessionStoreType.DYNAMODB:
        from proxyfail.store.dynamodb import DynamoDBAttendanceStore

        return DynamoDBAttendanceStore(
            table_name=config.attendance_table,
            region=config.aws_region,
            aws_profile=config.aws_profile,
        )

    return InMemoryAttendanceStore()
