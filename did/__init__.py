"""
did - Personal time tracking from the command line.

Entries are kept in a local JSON Lines file with soft delete, undo and a
rotating set of backups taken before every destructive change.
"""

__version__ = "0.1.0"

from did.entry import Entry
from did.exceptions import (
    BackupError,
    ConfigError,
    DidError,
    StorageError,
)

__all__ = [
    "__version__",
    "Entry",
    "DidError",
    "ConfigError",
    "StorageError",
    "BackupError",
]
