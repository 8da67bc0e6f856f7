"""Audit Store - Abstraction for audit log persistence.

This module provides an interface for audit log storage backends,
decoupling the verifier from specific persistence mechanisms.

Design principles:
- ABC-based interface for testability and extensibility
- Support for file or remote storage backends
- Thread-safe operations
- Atomic writes with integrity verification
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, List, Optional
import fcntl
import hashlib
import json
import logging
import os
import threading

from proxyfail.common.constants import AuditConstants
from proxyfail.governance.schemas import AuditEntry

logger = logging.getLogger(__name__)


class AuditLogIntegrityError(Exception):
    """Raised when audit log integrity check fails."""
    pass


class AuditStore(ABC):
    """Abstract base class for audit log storage backends.

    Implementations must provide thread-safe, append-only storage
    with optional hash chain integrity.
    """

    @abstractmethod
    def append_entry(self, entry: AuditEntry) -> AuditEntry:
        """Append an audit entry to the store.

        Args:
            entry: The audit entry to append

        Returns:
            The entry with hash chain fields populated

        Raises:
            IOError: If write fails
        """
        pass

    @abstractmethod
    def get_entries(
        self,
        date: Optional[str] = None,
        attendance_id: Optional[str] = None,
        session_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Generator[AuditEntry, None, None]:
        """Retrieve audit entries with optional filtering.

        Args:
            date: Filter by date (YYYY-MM-DD format)
            attendance_id: Filter by claim ID
            session_id: Filter by session ID
            reason: Filter by verdict reason

        Yields:
            Matching AuditEntry objects
        """
        pass

    @abstractmethod
    def verify_integrity(self, date: Optional[str] = None) -> bool:
        """Verify hash chain integrity of stored entries.

        Raises:
            AuditLogIntegrityError: If integrity check fails
        """
        pass

    @abstractmethod
    def get_last_hash(self) -> Optional[str]:
        """Get the hash of the last entry for chain continuity."""
        pass


def matches_filters(
    entry: AuditEntry,
    attendance_id: Optional[str] = None,
    session_id: Optional[str] = None,
    reason: Optional[str] = None,
) -> bool:
    """Check an entry against the optional get_entries filters."""
    if attendance_id and entry.attendance_id != attendance_id:
        return False
    if session_id and entry.session_id != session_id:
        return False
    if reason and entry.reason != reason:
        return False
    return True


class FileAuditStore(AuditStore):
    """File-based audit store with JSONL format and hash chain integrity.

    Features:
    - Append-only JSONL files with daily rotation
    - Hash chain for tamper detection
    - Atomic writes with file locking
    - Sidecar metadata for fast startup
    """

    DEFAULT_LOG_DIR = Path(__file__).parent.parent.parent.parent.parent / "logs" / "audit"
    METADATA_SUFFIX = ".meta"

    def __init__(
        self,
        log_dir: Optional[str] = None,
        log_filename_pattern: str = "proxyfail_audit_{date}.jsonl",
        enable_hash_chain: bool = True,
        hash_algorithm: str = AuditConstants.HASH_ALGORITHM,
        fsync_on_write: bool = False,
    ):
        """Initialize file audit store.

        Args:
            log_dir: Directory for audit logs. Uses default if not provided.
            log_filename_pattern: Pattern for log filename. {date} is replaced.
            enable_hash_chain: Whether to enable hash chain integrity.
            hash_algorithm: Hash algorithm for integrity checks.
            fsync_on_write: Whether to fsync after each write.
        """
        self.log_dir = Path(log_dir) if log_dir else self.DEFAULT_LOG_DIR
        self.log_filename_pattern = log_filename_pattern
        self.enable_hash_chain = enable_hash_chain
        self.hash_algorithm = hash_algorithm
        self.fsync_on_write = fsync_on_write

        self._lock = threading.Lock()
        self._last_hash: Optional[str] = None

        self.log_dir.mkdir(parents=True, exist_ok=True)
        try:
            os.chmod(self.log_dir, 0o700)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.log_dir}")

        if self.enable_hash_chain:
            self._last_hash = self._load_last_hash()

    def _get_log_path(self, date: Optional[str] = None) -> Path:
        """Get path to the log file for a date (today by default)."""
        if date is None:
            date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return self.log_dir / self.log_filename_pattern.replace("{date}", date)

    def _get_metadata_path(self) -> Path:
        """Get path to current day's metadata file."""
        log_path = self._get_log_path()
        return log_path.with_suffix(log_path.suffix + self.METADATA_SUFFIX)

    def _load_last_hash(self) -> Optional[str]:
        """Load last hash from metadata file or scan log."""
        meta_path = self._get_metadata_path()

        if meta_path.exists():
            try:
                with open(meta_path, "r") as f:
                    return json.load(f).get("last_hash")
            except (json.JSONDecodeError, IOError):
                logger.warning(f"Unreadable audit metadata {meta_path}, rescanning log")

        return self._scan_log_for_last_hash()

    def _scan_log_for_last_hash(self) -> Optional[str]:
        """Read the last hash from the current log file."""
        log_path = self._get_log_path()

        if not log_path.exists():
            return None

        last_hash = None
        try:
            with open(log_path, "r") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        last_hash = json.loads(line).get("entry_hash")
        except (json.JSONDecodeError, IOError):
            return None

        return last_hash

    def _save_metadata(self, last_hash: str) -> None:
        """Save metadata to sidecar file for fast startup."""
        meta = {
            "last_hash": last_hash,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            with open(self._get_metadata_path(), "w") as f:
                json.dump(meta, f)
        except IOError as e:
            logger.warning(f"Could not write audit metadata: {e}")

    def _compute_hash(self, content: str) -> str:
        """Compute hash of content using configured algorithm."""
        hasher = hashlib.new(self.hash_algorithm)
        hasher.update(content.encode("utf-8"))
        return hasher.hexdigest()

    def _serialize_for_hash(self, entry_dict: dict) -> str:
        """Serialize entry dict canonically for hash computation."""
        return json.dumps(entry_dict, sort_keys=True, ensure_ascii=False, default=str)

    def _create_hash_chain_entry(self, entry: AuditEntry) -> AuditEntry:
        """Add hash chain fields to entry."""
        if not self.enable_hash_chain:
            return entry

        entry_dict = entry.model_dump(mode="json")
        entry_dict["previous_hash"] = self._last_hash
        entry_dict["entry_hash"] = None

        entry_dict["entry_hash"] = self._compute_hash(
            self._serialize_for_hash(entry_dict)
        )

        return AuditEntry.model_validate(entry_dict)

    def append_entry(self, entry: AuditEntry) -> AuditEntry:
        """Append entry to log file with atomic write and file locking."""
        with self._lock:
            log_path = self._get_log_path()
            # Each daily file starts its own chain
            if not log_path.exists():
                self._last_hash = None
            entry = self._create_hash_chain_entry(entry)

            fd = os.open(
                str(log_path),
                os.O_WRONLY | os.O_CREAT | os.O_APPEND,
                0o600
            )
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                try:
                    os.write(fd, (entry.to_jsonl() + "\n").encode("utf-8"))
                    if self.fsync_on_write:
                        os.fsync(fd)
                finally:
                    fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                os.close(fd)

            if self.enable_hash_chain and entry.entry_hash:
                self._last_hash = entry.entry_hash
                self._save_metadata(entry.entry_hash)

            return entry

    def get_entries(
        self,
        date: Optional[str] = None,
        attendance_id: Optional[str] = None,
        session_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Generator[AuditEntry, None, None]:
        """Retrieve audit entries with optional filtering."""
        log_path = self._get_log_path(date)

        if not log_path.exists():
            return

        with open(log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue

                try:
                    entry = AuditEntry.from_jsonl(line)
                except (json.JSONDecodeError, ValueError) as e:
                    logger.warning(f"Skipped malformed audit entry: {e}")
                    continue

                if matches_filters(entry, attendance_id, session_id, reason):
                    yield entry

    def verify_integrity(self, date: Optional[str] = None) -> bool:
        """Verify hash chain integrity of log file."""
        if not self.enable_hash_chain:
            return True

        log_path = self._get_log_path(date)

        if not log_path.exists():
            return True  # Empty log is valid

        previous_hash = None
        line_number = 0

        with open(log_path, "r") as f:
            for line in f:
                line_number += 1
                line = line.strip()
                if not line:
                    continue

                try:
                    entry_dict = json.loads(line)
                except json.JSONDecodeError as e:
                    raise AuditLogIntegrityError(
                        f"Malformed JSON at line {line_number}: {e}"
                    )

                if entry_dict.get("previous_hash") != previous_hash:
                    raise AuditLogIntegrityError(
                        f"Hash chain broken at line {line_number}. "
                        f"Expected previous_hash={previous_hash}, "
                        f"got {entry_dict.get('previous_hash')}"
                    )

                stored_hash = entry_dict.get("entry_hash")
                entry_dict["entry_hash"] = None
                computed_hash = self._compute_hash(self._serialize_for_hash(entry_dict))

                if computed_hash != stored_hash:
                    raise AuditLogIntegrityError(
                        f"Entry hash mismatch at line {line_number}. "
                        f"Entry may have been tampered with."
                    )

                previous_hash = stored_hash

        return True

    def get_last_hash(self) -> Optional[str]:
        """Get the hash of the last entry."""
        return self._last_hash

    def get_log_files(self) -> List[Path]:
        """Get list of all audit log files."""
        return sorted(self.log_dir.glob("*.jsonl"))

    def get_entry_count(self, date: Optional[str] = None) -> int:
        """Get count of entries in log file."""
        log_path = self._get_log_path(date)

        if not log_path.exists():
            return 0

        with open(log_path, "r") as f:
            return sum(1 for line in f if line.strip())
