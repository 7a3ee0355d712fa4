"""
Operation log records for did.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass
class StorageLogEntry:
    """One mutation of the entries file or its backups."""

    timestamp: str  # ISO 8601, local offset
    operation: str  # append, rewrite, update, delete, soft_delete, restore, purge, ...
    path: str

    # Set only for operations they apply to
    index: int | None = None
    count: int = 0
    backup_number: int | None = None

    error: str | None = None
    error_type: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def summary(self) -> str:
        """Short human-readable form, used as the log message."""
        parts = [self.operation]
        if self.index is not None:
            parts.append(f"index={self.index}")
        if self.count:
            parts.append(f"count={self.count}")
        if self.backup_number is not None:
            parts.append(f"backup={self.backup_number}")
        if self.failed:
            parts.append(f"error={self.error_type}: {self.error}")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageLogEntry":
        """Rebuild from a log line; keys this version does not know are ignored."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def now_iso() -> str:
    """Current local time as ISO 8601 with offset."""
    return datetime.now().astimezone().isoformat()
