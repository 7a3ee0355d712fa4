"""
did Logging System.

Structured JSONL log of storage mutations (appends, rewrites, soft
deletes, purges, backups and restores).

Usage:
    from did.logging import record_operation

    record_operation("soft_delete", path, index=3)

Logs are written to <app dir>/logs/storage.jsonl unless DID_LOG_DIR is set.
"""

import logging
import threading
from pathlib import Path
from typing import Any

from .config import LogConfig, get_config, set_config
from .entries import StorageLogEntry, now_iso
from .handlers import ENTRY_ATTR, build_storage_logger

STORAGE_LOGGER_NAME = "did.storage.ops"

logger = logging.getLogger(__name__)

# Built on first use so no log file is created before a mutation happens
_storage_logger: logging.Logger | None = None
_init_lock = threading.Lock()


def _ensure_logger() -> logging.Logger:
    global _storage_logger

    if _storage_logger is not None:
        return _storage_logger

    with _init_lock:
        if _storage_logger is None:
            _storage_logger = build_storage_logger(STORAGE_LOGGER_NAME, get_config())
    return _storage_logger


def reset_loggers() -> None:
    """Close the operation log so the next use picks up the current LogConfig."""
    global _storage_logger
    with _init_lock:
        if _storage_logger is not None:
            for handler in list(_storage_logger.handlers):
                handler.close()
            _storage_logger.handlers.clear()
        _storage_logger = None


class _LazyLogger:
    """Stand-in for the operation logger that builds it on first call."""

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        _ensure_logger().log(level, msg, *args, **kwargs)


storage_logger = _LazyLogger()


def record_operation(
    operation: str,
    path: str | Path,
    *,
    index: int | None = None,
    count: int = 0,
    backup_number: int | None = None,
    error: BaseException | None = None,
) -> StorageLogEntry:
    """
    Write one StorageLogEntry for a storage mutation.

    The operation log is advisory: a failure to open it is reported at
    debug level and never alters the outcome of the storage call.

    Returns:
        The entry that was logged
    """
    entry = StorageLogEntry(
        timestamp=now_iso(),
        operation=operation,
        path=str(path),
        index=index,
        count=count,
        backup_number=backup_number,
        error=str(error) if error else None,
        error_type=type(error).__name__ if error else None,
    )
    level = logging.ERROR if entry.failed else logging.INFO
    try:
        storage_logger.log(level, entry.summary(), extra={ENTRY_ATTR: entry})
    except OSError:
        logger.debug("Operation log unavailable", exc_info=True)
    return entry


__all__ = [
    "storage_logger",
    "record_operation",
    "reset_loggers",
    "StorageLogEntry",
    "now_iso",
    "LogConfig",
    "get_config",
    "set_config",
]
