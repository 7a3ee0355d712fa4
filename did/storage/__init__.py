"""
did storage layer.

- jsonl.py: line-oriented entry store with fault-tolerant reads
- lifecycle.py: soft delete, restore (undo) and purge
- backup.py: rotating ring of pre-mutation snapshots
- health.py: read-only corruption report
- restore.py: restore-from-backup sequencing for the CLI
- atomic.py: temp-file-then-rename whole-file writes
"""

from did.storage.atomic import write_atomic
from did.storage.backup import (
    BACKUP_SUFFIX,
    MAX_BACKUP_COUNT,
    BackupInfo,
    BackupRotator,
    create_backup,
    get_backup_path,
    list_backups,
    restore_backup,
)
from did.storage.health import StorageHealth, validate_storage
from did.storage.jsonl import EntryStore, ParseWarning, ReadResult, check_index
from did.storage.lifecycle import DEFAULT_RETENTION, DeletionLifecycle, local_now
from did.storage.restore import BackupChoice, available_backups, restore_from_backup

__all__ = [
    # Line store
    "EntryStore",
    "ParseWarning",
    "ReadResult",
    "check_index",
    # Lifecycle
    "DeletionLifecycle",
    "DEFAULT_RETENTION",
    "local_now",
    # Backups
    "BACKUP_SUFFIX",
    "MAX_BACKUP_COUNT",
    "BackupInfo",
    "BackupRotator",
    "create_backup",
    "get_backup_path",
    "list_backups",
    "restore_backup",
    # Health
    "StorageHealth",
    "validate_storage",
    # Restore
    "BackupChoice",
    "available_backups",
    "restore_from_backup",
    # Atomic writes
    "write_atomic",
]
