"""Audit module - Immutable logging for all verdicts.

Provides append-only logging with hash integrity verification.
Supports multiple backends: File (local JSONL) and S3 (cloud).

Components:
- AuditLogger: High-level facade for audit logging
- AuditStore: Abstract base class for storage backends
- FileAuditStore: File-based storage with hash chain integrity
- S3AuditStore: S3-backed immutable per-entry objects (proxyfail.governance.audit.s3_store)
- BackgroundAuditWriter: Async writer for high throughput
"""

from proxyfail.governance.audit.store import (
    AuditStore,
    FileAuditStore,
    AuditLogIntegrityError,
)
from proxyfail.governance.audit.logger import AuditLogger
from proxyfail.governance.audit.background_writer import BackgroundAuditWriter
from proxyfail.governance.audit.config import (
    create_audit_store,
    create_audit_logger,
)

__all__ = [
    "AuditLogger",
    "AuditStore",
    "FileAuditStore",
    "AuditLogIntegrityError",
    "BackgroundAuditWriter",
    "create_audit_store",
    "create_audit_logger",
]
