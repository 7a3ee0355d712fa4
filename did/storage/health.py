"""
did - Storage Health Check

Read-only diagnostic pass over the store file.
"""

from dataclasses import dataclass, field
from pathlib import Path

from did.storage.jsonl import EntryStore, ParseWarning, iter_raw_lines


@dataclass
class StorageHealth:
    """Line counts and corruption details for a store file."""

    total_lines: int = 0
    valid_entries: int = 0
    corrupted_entries: int = 0
    warnings: list[ParseWarning] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return self.corrupted_entries == 0


def validate_storage(path: str | Path) -> StorageHealth:
    """
    Count raw lines and decode every entry without modifying the file.

    A missing file reports all zeros.

    Raises:
        OSError: If the file exists but cannot be read
    """
    total_lines = sum(1 for _ in iter_raw_lines(Path(path)))
    result = EntryStore(path).read_all()

    return StorageHealth(
        total_lines=total_lines,
        valid_entries=len(result.entries),
        corrupted_entries=len(result.warnings),
        warnings=result.warnings,
    )
