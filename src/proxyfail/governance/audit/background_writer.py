"""Background Audit Writer - Async audit logging for high throughput.

Entries are never dropped: when the queue is full or the writer has shut
down, the entry is written synchronously instead.
"""

import atexit, logging, queue, threading
from typing import Optional

from proxyfail.governance.audit.store import AuditStore
from proxyfail.governance.schemas import AuditEntry
from proxyfail.common.constants import AuditConstants

logger = logging.getLogger(__name__)


class BackgroundAuditWriter:
    """Background writer for non-blocking audit log writes."""

    DEFAULT_QUEUE_SIZE = AuditConstants.QUEUE_SIZE
    DEFAULT_FLUSH_TIMEOUT = AuditConstants.FLUSH_TIMEOUT_SECONDS

    def __init__(
        self,
        store: AuditStore,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        flush_timeout: float = DEFAULT_FLUSH_TIMEOUT,
    ):
        """Initialize background audit writer.

        Args:
            store: Audit store backend.
            max_queue_size: Maximum number of entries to buffer.
            flush_timeout: Timeout for joining the writer thread on shutdown.
        """
        self.store = store
        self.max_queue_size = max_queue_size
        self.flush_timeout = flush_timeout

        self._queue: queue.Queue[Optional[AuditEntry]] = queue.Queue(
            maxsize=max_queue_size
        )

        self._shutdown_event = threading.Event()
        self._writer_thread: Optional[threading.Thread] = None

        self._entries_written = 0
        self._write_failures = 0
        self._sync_fallback_count = 0
        self._stats_lock = threading.Lock()

        self._start_writer()
        atexit.register(self.shutdown)

    def _start_writer(self) -> None:
        """Start the background writer thread."""
        self._writer_thread = threading.Thread(
            target=self._writer_loop,
            name="AuditWriter",
            daemon=True,
        )
        self._writer_thread.start()
        logger.info("Background audit writer started")

    def _write(self, entry: AuditEntry) -> None:
        try:
            self.store.append_entry(entry)
            with self._stats_lock:
                self._entries_written += 1
        except Exception as e:
            with self._stats_lock:
                self._write_failures += 1
            logger.error(
                f"Failed to write audit entry {entry.entry_id} "
                f"(attendance_id={entry.attendance_id}): {e}"
            )

    def _writer_loop(self) -> None:
        """Background loop that writes entries from the queue."""
        while not self._shutdown_event.is_set():
            try:
                entry = self._queue.get(timeout=AuditConstants.QUEUE_GET_TIMEOUT)
            except queue.Empty:
                continue

            try:
                if entry is None:
                    break
                self._write(entry)
            finally:
                self._queue.task_done()

        self._drain_queue()
        logger.info("Background audit writer stopped")

    def _drain_queue(self) -> None:
        """Drain remaining entries from the queue."""
        drained = 0
        while True:
            try:
                entry = self._queue.get_nowait()
            except queue.Empty:
                break
            if entry is not None:
                self._write(entry)
                drained += 1
            self._queue.task_done()

        if drained > 0:
            logger.info(f"Drained {drained} audit entries during shutdown")

    def append_entry(self, entry: AuditEntry) -> AuditEntry:
        """Queue an audit entry, writing synchronously when the queue is full.

        Returns:
            The entry (hash fields populated by store on actual write)
        """
        if self._shutdown_event.is_set():
            return self.store.append_entry(entry)

        try:
            self._queue.put_nowait(entry)
            return entry
        except queue.Full:
            with self._stats_lock:
                self._sync_fallback_count += 1
            logger.warning("Audit queue full, writing synchronously")
            return self.store.append_entry(entry)

    def flush(self) -> None:
        """Block until every queued entry has been written."""
        self._queue.join()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Shutdown the background writer gracefully."""
        if self._shutdown_event.is_set():
            return

        timeout = timeout if timeout is not None else self.flush_timeout

        logger.info("Shutting down background audit writer...")
        self._shutdown_event.set()

        try:
            self._queue.put_nowait(None)
        except queue.Full:
            logger.debug("Audit queue full at shutdown, writer will drain it")

        if self._writer_thread and self._writer_thread.is_alive():
            self._writer_thread.join(timeout=timeout)
            if self._writer_thread.is_alive():
                logger.warning("Audit writer did not stop cleanly")

        logger.info(
            f"Audit writer shutdown complete. "
            f"Written: {self._entries_written}, "
            f"Failed: {self._write_failures}, "
            f"Sync fallbacks: {self._sync_fallback_count}"
        )

    def get_stats(self) -> dict:
        """Get writer statistics."""
        with self._stats_lock:
            return {
                "entries_written": self._entries_written,
                "write_failures": self._write_failures,
                "sync_fallback_count": self._sync_fallback_count,
                "queue_size": self._queue.qsize(),
                "max_queue_size": self.max_queue_size,
            }

    @property
    def is_running(self) -> bool:
        """Whether the background writer is running."""
        return not self._shutdown_event.is_set()
