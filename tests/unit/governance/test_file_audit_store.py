"""Tests for the file-based audit store and its hash chain."""

import json
import tempfile
from pathlib import Path

import pytest

from proxyfail.governance.audit import AuditLogIntegrityError, FileAuditStore
from proxyfail.governance.schemas import AuditEntry


def make_entry(attendance_id="att_1", reason="verified_present", **overrides):
    fields = dict(
        attendance_id=attendance_id,
        session_id="ses_1",
        status="present" if reason == "verified_present" else "rejected",
        reason=reason,
        evidence={"distanceMeters": 4},
        claim={"attendanceId": attendance_id, "scannedToken": "QR-TEST123"},
        rules_version="1.0.0",
    )
    fields.update(overrides)
    return AuditEntry(**fields)


class TestFileAuditStore:
    """Test JSONL persistence, filtering and integrity."""

    @pytest.fixture
    def temp_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def store(self, temp_dir):
        return FileAuditStore(log_dir=temp_dir)

    def test_append_creates_daily_file(self, store, temp_dir):
        store.append_entry(make_entry())

        files = store.get_log_files()
        assert len(files) == 1
        assert files[0].name.startswith("proxyfail_audit_")
        assert store.get_entry_count() == 1

    def test_hash_chain_links_entries(self, store):
        first = store.append_entry(make_entry("att_1"))
        second = store.append_entry(make_entry("att_2"))

        assert first.previous_hash is None
        assert first.entry_hash is not None
        assert second.previous_hash == first.entry_hash
        assert store.get_last_hash() == second.entry_hash

    def test_verify_integrity_passes(self, store):
        for i in range(5):
            store.append_entry(make_entry(f"att_{i}"))
        assert store.verify_integrity() is True

    def test_verify_integrity_empty_log(self, store):
        assert store.verify_integrity() is True

    def test_tampered_entry_detected(self, store):
        store.append_entry(make_entry("att_1"))
        store.append_entry(make_entry("att_2", reason="out_of_range"))

        log_path = store.get_log_files()[0]
        lines = log_path.read_text().splitlines()
        record = json.loads(lines[1])
        record["reason"] = "verified_present"
        lines[1] = json.dumps(record)
        log_path.write_text("\n".join(lines) + "\n")

        with pytest.raises(AuditLogIntegrityError):
            store.verify_integrity()

    def test_deleted_entry_detected(self, store):
        for i in range(3):
            store.append_entry(make_entry(f"att_{i}"))

        log_path = store.get_log_files()[0]
        lines = log_path.read_text().splitlines()
        log_path.write_text("\n".join([lines[0], lines[2]]) + "\n")

        with pytest.raises(AuditLogIntegrityError):
            store.verify_integrity()

    def test_filters(self, store):
        store.append_entry(make_entry("att_1", session_id="ses_a"))
        store.append_entry(make_entry("att_2", reason="out_of_range", session_id="ses_a"))
        store.append_entry(make_entry("att_3", reason="invalid_qr", session_id="ses_b"))

        assert [e.attendance_id for e in store.get_entries(attendance_id="att_2")] == ["att_2"]
        assert len(list(store.get_entries(session_id="ses_a"))) == 2
        assert [e.attendance_id for e in store.get_entries(reason="invalid_qr")] == ["att_3"]

    def test_entries_for_other_date_empty(self, store):
        store.append_entry(make_entry())
        assert list(store.get_entries(date="2000-01-01")) == []

    def test_chain_resumes_after_restart(self, temp_dir):
        first = FileAuditStore(log_dir=temp_dir).append_entry(make_entry("att_1"))

        reopened = FileAuditStore(log_dir=temp_dir)
        second = reopened.append_entry(make_entry("att_2"))

        assert second.previous_hash == first.entry_hash
        assert reopened.verify_integrity() is True

    def test_new_log_file_starts_fresh_chain(self, store):
        store._last_hash = "carried-over-from-yesterday"

        entry = store.append_entry(make_entry())

        assert entry.previous_hash is None
        assert store.verify_integrity() is True

    def test_hash_chain_disabled(self, temp_dir):
        store = FileAuditStore(log_dir=temp_dir, enable_hash_chain=False)
        entry = store.append_entry(make_entry())
        assert entry.entry_hash is None
        assert store.verify_integrity() is True

    def test_malformed_lines_skipped_on_read(self, store):
        store.append_entry(make_entry("att_1"))
        log_path = store.get_log_files()[0]
        with open(log_path, "a") as f:
            f.write("not json\n")

        assert [e.attendance_id for e in store.get_entries()] == ["att_1"]
