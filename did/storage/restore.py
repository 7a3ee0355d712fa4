"""
did - Restore From Backup

Sequences the backup ring operations for the `did restore` command.
Range checks, existence checks and the safety backup all live in
BackupRotator; this module only labels slots and returns results.
"""

from dataclasses import dataclass
from pathlib import Path

from did.storage.backup import BackupRotator


@dataclass
class BackupChoice:
    """A backup slot as offered to the user."""

    number: int
    path: Path
    label: str = ""

    def describe(self) -> str:
        """One-line description, e.g. '1: /path/entries.jsonl.bak.1 (most recent)'."""
        text = f"{self.number}: {self.path}"
        if self.label:
            text += f" ({self.label})"
        return text


def available_backups(store_path: str | Path) -> list[BackupChoice]:
    """Existing backups of the store, most recent first."""
    return [
        BackupChoice(
            number=info.number,
            path=info.path,
            label="most recent" if info.is_most_recent else "",
        )
        for info in BackupRotator(store_path).list_backups()
    ]


def restore_from_backup(store_path: str | Path, number: int = 1) -> BackupChoice:
    """
    Restore the store from backup `number` (1 is the most recent).

    Returns:
        The slot that was restored

    Raises:
        BackupRangeError: If number is outside the backup ring
        BackupNotFoundError: If that backup does not exist
    """
    rotator = BackupRotator(store_path)
    path = rotator.validate_number(number)
    rotator.restore_backup(number)
    return BackupChoice(number=number, path=path, label="most recent" if number == 1 else "")
