"""Governance - audit trail for verdicts."""

from proxyfail.governance.schemas import AuditEntry
from proxyfail.governance.audit import (
    AuditLogger,
    AuditStore,
    FileAuditStore,
    AuditLogIntegrityError,
)

__all__ = [
    "AuditEntry",
    "AuditLogger",
    "AuditStore",
    "FileAuditStore",
    "AuditLogIntegrityError",
]
