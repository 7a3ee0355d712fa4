"""
did - Backup Rotation

A fixed ring of MAX_BACKUP_COUNT snapshots kept next to the store file:

    entries.jsonl.bak.1   most recent
    entries.jsonl.bak.2
    entries.jsonl.bak.3   oldest

A snapshot is taken before every destructive rewrite. Taking one evicts
the oldest slot, shifts the others outward (highest first, so nothing is
overwritten before it has moved) and copies the store into slot 1.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from did.exceptions import BackupNotFoundError, BackupRangeError
from did.logging import record_operation
from did.storage.atomic import write_atomic

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"
MAX_BACKUP_COUNT = 3


@dataclass
class BackupInfo:
    """An existing backup slot."""

    number: int  # 1 is the most recent
    path: Path

    @property
    def is_most_recent(self) -> bool:
        return self.number == 1


def get_backup_path(store_path: str | Path, number: int) -> Path:
    """Path of backup slot `number` for the given store file."""
    return Path(f"{store_path}{BACKUP_SUFFIX}.{number}")


class BackupRotator:
    """Maintains the backup ring for one store file."""

    def __init__(self, store_path: str | Path, max_count: int = MAX_BACKUP_COUNT):
        self.store_path = Path(store_path)
        self.max_count = max_count

    def backup_path(self, number: int) -> Path:
        """Path of backup slot `number`."""
        return get_backup_path(self.store_path, number)

    def create_backup(self) -> Path | None:
        """
        Snapshot the store into slot 1, rotating older slots outward.

        Returns:
            Path of the new slot 1 backup, or None when the store file does
            not exist (nothing to back up)

        Raises:
            OSError: If rotation or copying fails
        """
        if not self.store_path.exists():
            logger.debug(f"No store at {self.store_path}, skipping backup")
            return None

        self._rotate()

        target = self.backup_path(1)
        shutil.copyfile(self.store_path, target)
        record_operation("backup", self.store_path, backup_number=1)
        return target

    def _rotate(self) -> None:
        """Evict the oldest slot and shift every other slot up by one."""
        self.backup_path(self.max_count).unlink(missing_ok=True)

        for number in range(self.max_count - 1, 0, -1):
            try:
                os.replace(self.backup_path(number), self.backup_path(number + 1))
            except FileNotFoundError:
                continue

    def list_backups(self) -> list[BackupInfo]:
        """Existing backups, most recent first."""
        backups = []
        for number in range(1, self.max_count + 1):
            path = self.backup_path(number)
            if path.is_file():
                backups.append(BackupInfo(number=number, path=path))
        return backups

    def validate_number(self, number: int) -> Path:
        """
        Check a backup number against the ring and the filesystem.

        Returns:
            Path of the backup slot

        Raises:
            BackupRangeError: If number is outside 1..max_count
            BackupNotFoundError: If the slot file does not exist
        """
        if number < 1 or number > self.max_count:
            raise BackupRangeError(
                f"invalid backup number {number}, must be between 1 and {self.max_count}",
                number=number,
                max_count=self.max_count,
            )
        path = self.backup_path(number)
        if not path.is_file():
            raise BackupNotFoundError(f"backup {number} does not exist", number=number)
        return path

    def restore_backup(self, number: int) -> None:
        """
        Overwrite the store with the content of backup slot `number`.

        The current store is backed up first, so a restore can itself be
        undone by restoring slot 1. The chosen slot's content is read
        before rotation moves it, and the slot it came from is never
        deleted.

        Raises:
            BackupRangeError: If number is outside 1..max_count
            BackupNotFoundError: If the slot file does not exist
            OSError: If copying fails
        """
        source = self.validate_number(number)
        content = source.read_bytes()

        self.create_backup()
        try:
            write_atomic(self.store_path, content)
        except OSError as e:
            record_operation("restore_backup", self.store_path, backup_number=number, error=e)
            raise
        record_operation("restore_backup", self.store_path, backup_number=number)


def create_backup(store_path: str | Path) -> Path | None:
    """Snapshot `store_path` into backup slot 1."""
    return BackupRotator(store_path).create_backup()


def list_backups(store_path: str | Path) -> list[BackupInfo]:
    """Existing backups of `store_path`, most recent first."""
    return BackupRotator(store_path).list_backups()


def restore_backup(store_path: str | Path, number: int) -> None:
    """Restore `store_path` from backup slot `number`."""
    BackupRotator(store_path).restore_backup(number)
