"""
did - Exception Hierarchy

All did-specific exceptions inherit from DidError.
Storage and backup errors carry the offending index or slot number
so the CLI layer can word its messages without parsing strings.
"""

from typing import Any


class DidError(Exception):
    """Base exception for all did-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Configuration Errors
class ConfigError(DidError):
    """Raised when configuration is invalid or unreadable."""

    pass


# Input Errors
class InputError(DidError):
    """Base exception for user input that cannot be turned into an entry."""

    pass


class DurationError(InputError):
    """Raised when a duration string cannot be parsed."""

    def __init__(self, message: str, value: str):
        super().__init__(message, {"value": value})
        self.value = value


class EntryInputError(InputError):
    """Raised when raw entry input is malformed (missing duration, empty description)."""

    pass


# Storage Errors
class StorageError(DidError):
    """Base exception for entry storage errors."""

    pass


class EntryDecodeError(StorageError):
    """Raised when a single stored line cannot be decoded into an entry.

    Recovered inside the line store and reported as a ParseWarning.
    """

    pass


class EntryIndexError(StorageError):
    """Raised when an entry index is outside the valid range."""

    def __init__(self, message: str, index: int, count: int):
        super().__init__(message, {"index": index, "count": count})
        self.index = index
        self.count = count


class NoDeletedEntriesError(StorageError):
    """Raised when undo is requested but no entry is soft-deleted."""

    pass


# Backup Errors
class BackupError(DidError):
    """Base exception for backup rotation and restore errors."""

    pass


class BackupRangeError(BackupError):
    """Raised when a backup number is outside 1..MAX_BACKUP_COUNT."""

    def __init__(self, message: str, number: int, max_count: int):
        super().__init__(message, {"number": number, "max_count": max_count})
        self.number = number
        self.max_count = max_count


class BackupNotFoundError(BackupError):
    """Raised when a backup number is valid but the slot file does not exist."""

    def __init__(self, message: str, number: int):
        super().__init__(message, {"number": number})
        self.number = number


# Timer Errors
class TimerError(DidError):
    """Base exception for the running-timer state."""

    pass


class TimerRunningError(TimerError):
    """Raised when a timer is started while another one is running."""

    def __init__(self, message: str, state: Any):
        super().__init__(message, {"description": state.description})
        self.state = state


class NoTimerError(TimerError):
    """Raised when stopping or cancelling with no timer running."""

    pass


class TimerStateError(TimerError):
    """Raised when the timer file exists but cannot be decoded."""

    pass
