"""
did - Soft Delete Lifecycle

Deleting an entry stamps `deleted_at` instead of removing the line, so
positions stay stable and the deletion can be undone. Purging removes
soft-deleted entries for good. Every mutation here takes a backup and
then rewrites the whole file through EntryStore.rewrite_all.

    active --soft_delete--> deleted --purge--> (gone)
       ^                       |
       +-------restore---------+
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from did.entry import Entry
from did.exceptions import NoDeletedEntriesError
from did.logging import record_operation
from did.storage.backup import BackupRotator
from did.storage.jsonl import EntryStore, check_index

logger = logging.getLogger(__name__)

# Soft-deleted entries older than this are purged automatically after a delete
DEFAULT_RETENTION = timedelta(days=7)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time as a timezone-aware local datetime."""
    return datetime.now().astimezone()


def _comparable(ts: datetime) -> datetime:
    # Entries edited by hand may carry naive timestamps; read them as local time
    if ts.tzinfo is None:
        return ts.astimezone()
    return ts


class DeletionLifecycle:
    """
    Soft delete, restore and purge over an EntryStore.

    Args:
        store: The entry store to operate on
        clock: Source of the current time (stamps deleted_at, ages purges)
        backups: Backup ring for the store; defaults to one for store.path
    """

    def __init__(
        self,
        store: EntryStore,
        clock: Clock | None = None,
        backups: BackupRotator | None = None,
    ):
        self.store = store
        self.clock = clock or local_now
        self.backups = backups or BackupRotator(store.path)

    def soft_delete(self, index: int) -> Entry:
        """
        Mark the entry at a 0-based storage index as deleted.

        The entry keeps its position; only deleted_at is set.

        Returns:
            The entry as it now reads on disk

        Raises:
            EntryIndexError: If index is out of range (file left untouched)
        """
        entries = self.store.read_entries()
        check_index(index, len(entries))

        entries[index].deleted_at = self.clock()
        self.backups.create_backup()
        self.store.rewrite_all(entries)

        record_operation("soft_delete", self.store.path, index=index)
        return entries[index]

    def restore(self, index: int) -> Entry:
        """
        Clear deleted_at on the entry at a 0-based storage index.

        Returns:
            The restored entry

        Raises:
            EntryIndexError: If index is out of range (file left untouched)
        """
        entries = self.store.read_entries()
        check_index(index, len(entries))

        entries[index].deleted_at = None
        self.backups.create_backup()
        self.store.rewrite_all(entries)

        record_operation("restore", self.store.path, index=index)
        return entries[index]

    def most_recently_deleted(self) -> tuple[Entry, int]:
        """
        Find the entry with the latest deleted_at.

        Ties go to the entry later in the file.

        Returns:
            (entry, storage index)

        Raises:
            NoDeletedEntriesError: If no entry is soft-deleted
        """
        latest: tuple[Entry, int] | None = None
        for index, entry in enumerate(self.store.read_entries()):
            if entry.deleted_at is None:
                continue
            if latest is None or _comparable(entry.deleted_at) >= _comparable(
                latest[0].deleted_at
            ):
                latest = (entry, index)

        if latest is None:
            raise NoDeletedEntriesError("no deleted entries to restore")
        return latest

    def undo(self) -> Entry:
        """Restore the most recently soft-deleted entry."""
        _, index = self.most_recently_deleted()
        return self.restore(index)

    def purge_deleted(self) -> int:
        """
        Permanently remove every soft-deleted entry.

        Returns:
            Number of entries removed
        """
        return self._purge(lambda entry: entry.deleted_at is not None, "purge")

    def purge_older_than(self, age: timedelta) -> int:
        """
        Permanently remove entries deleted at least `age` ago.

        An entry deleted exactly `age` ago is removed.

        Returns:
            Number of entries removed
        """
        now = _comparable(self.clock())

        def expired(entry: Entry) -> bool:
            if entry.deleted_at is None:
                return False
            return now - _comparable(entry.deleted_at) >= age

        return self._purge(expired, "purge_expired")

    def _purge(self, should_drop: Callable[[Entry], bool], operation: str) -> int:
        entries = self.store.read_entries()
        kept = [e for e in entries if not should_drop(e)]
        removed = len(entries) - len(kept)

        if removed == 0:
            logger.debug(f"{operation}: nothing to remove from {self.store.path}")
            return 0

        self.backups.create_backup()
        self.store.rewrite_all(kept)
        record_operation(operation, self.store.path, count=removed)
        return removed
