"""Audit Logger - Immutable logging of every verdict.
"""

import logging
from typing import Any, Dict, Generator, Optional

from proxyfail.core.verdict import Verdict
from proxyfail.data.schemas import Attendance
from proxyfail.governance.audit.background_writer import BackgroundAuditWriter
from proxyfail.governance.audit.store import AuditStore, FileAuditStore
from proxyfail.governance.schemas import AuditEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    """Records verdicts immutably through an AuditStore backend."""

    def __init__(
        self,
        store: Optional[AuditStore] = None,
        use_background_writer: bool = False,
        rules_version: Optional[str] = None,
    ):
        """Initialize audit logger.

        Args:
            store: Storage backend. Creates FileAuditStore if not provided.
            use_background_writer: Queue writes on a background thread.
            rules_version: Verification rules version stamped on entries.
        """
        self.store = store or FileAuditStore()
        self.rules_version = rules_version
        self._writer: Optional[BackgroundAuditWriter] = (
            BackgroundAuditWriter(self.store) if use_background_writer else None
        )

    def log_verdict(
        self,
        verdict: Verdict,
        claim: Attendance,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """Log a verdict together with the raw claim snapshot."""
        entry = AuditEntry(
            attendance_id=verdict.attendance_id,
            session_id=verdict.session_id,
            student_id=verdict.student_id,
            status=verdict.status.value,
            reason=verdict.reason.value,
            evidence=verdict.evidence,
            error_details=verdict.error_details,
            claim=claim.snapshot(),
            rules_version=self.rules_version,
            timestamp=verdict.decided_at,
            metadata=metadata or {},
        )
        return self.append(entry)

    def append(self, entry: AuditEntry) -> AuditEntry:
        """Append one entry (queued when the background writer is enabled)."""
        if self._writer is not None:
            return self._writer.append_entry(entry)
        return self.store.append_entry(entry)

    def get_entries(
        self,
        date: Optional[str] = None,
        attendance_id: Optional[str] = None,
        session_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Generator[AuditEntry, None, None]:
        """Retrieve audit entries with optional filtering."""
        return self.store.get_entries(
            date=date,
            attendance_id=attendance_id,
            session_id=session_id,
            reason=reason,
        )

    def verify_integrity(self, date: Optional[str] = None) -> bool:
        """Verify the backend's hash chain for a date."""
        return self.store.verify_integrity(date)

    def flush(self) -> None:
        """Wait for queued entries to reach the store."""
        if self._writer is not None:
            self._writer.flush()

    def shutdown(self) -> None:
        """Flush and stop the background writer, if any."""
        if self._writer is not None:
            self._writer.shutdown()
            logger.info("Audit logger background writer stopped")
