"""Tests for the storage health check and backup restore flow."""

import pytest

from did.entry import encode_entry
from did.exceptions import BackupNotFoundError, BackupRangeError
from did.storage import (
    available_backups,
    create_backup,
    restore_from_backup,
    validate_storage,
)


class TestValidateStorage:
    """Tests for validate_storage."""

    def test_missing_file(self, store_path):
        health = validate_storage(store_path)
        assert health.total_lines == 0
        assert health.valid_entries == 0
        assert health.corrupted_entries == 0
        assert health.is_healthy

    def test_healthy_file(self, store, store_path, make_entry):
        for n in range(3):
            store.append(make_entry(n))
        health = validate_storage(store_path)
        assert (health.total_lines, health.valid_entries, health.corrupted_entries) == (3, 3, 0)
        assert health.warnings == []
        assert health.is_healthy

    def test_corrupted_lines_counted(self, store_path, make_entry):
        """Counts raw lines, valid entries and corrupted lines separately."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text(
            "\n".join([encode_entry(make_entry(0)), "garbage", encode_entry(make_entry(1)), "{"])
            + "\n",
            encoding="utf-8",
        )
        health = validate_storage(store_path)
        assert health.total_lines == 4
        assert health.valid_entries == 2
        assert health.corrupted_entries == 2
        assert [w.line_number for w in health.warnings] == [2, 4]
        assert not health.is_healthy

    def test_does_not_modify_file(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_bytes(b"garbage\n")
        validate_storage(store_path)
        assert store_path.read_bytes() == b"garbage\n"

    def test_deleted_entries_are_valid(self, store, store_path, make_entry, clock):
        store.append(make_entry(0, deleted_at=clock()))
        assert validate_storage(store_path).valid_entries == 1


class TestRestoreFromBackup:
    """Tests for the restore command flow."""

    def test_available_backups_labels(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("x")
        create_backup(store_path)
        create_backup(store_path)

        choices = available_backups(store_path)
        assert [c.number for c in choices] == [1, 2]
        assert choices[0].label == "most recent"
        assert choices[1].label == ""
        assert choices[0].describe().endswith("entries.jsonl.bak.1 (most recent)")
        assert choices[1].describe().startswith("2: ")

    def test_no_backups(self, store_path):
        assert available_backups(store_path) == []

    def test_restore_default_is_most_recent(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("old")
        create_backup(store_path)
        store_path.write_text("new")

        choice = restore_from_backup(store_path)

        assert choice.number == 1
        assert store_path.read_text() == "old"

    def test_restore_errors(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("x")
        with pytest.raises(BackupRangeError):
            restore_from_backup(store_path, 9)
        with pytest.raises(BackupNotFoundError):
            restore_from_backup(store_path, 1)
