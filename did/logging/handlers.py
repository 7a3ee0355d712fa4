"""
Operation Log Handler for did.

Every record becomes one line of storage.jsonl. Records produced by
record_operation carry a StorageLogEntry in `extra`; anything else
logged to the operation logger is stored as a plain message line.
"""

import json
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .config import LogConfig

ENTRY_ATTR = "storage_entry"


class OperationLogHandler(RotatingFileHandler):
    """Size-rotated JSONL file of storage operations."""

    def __init__(self, filename: str | Path, max_bytes: int, backup_count: int):
        filepath = Path(filename)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            str(filepath),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.shouldRollover(record):
                self.doRollover()
            self.stream.write(json.dumps(record_to_dict(record), default=str) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)


def record_to_dict(record: logging.LogRecord) -> dict[str, Any]:
    """JSON object for one log line, with the level always present."""
    entry = getattr(record, ENTRY_ATTR, None)
    if entry is not None:
        data = entry.to_dict()
    else:
        data = {
            "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "message": record.getMessage(),
            "logger": record.name,
        }
    data["level"] = record.levelname
    return data


def build_storage_logger(name: str, config: LogConfig) -> logging.Logger:
    """
    Configure `name` to write only to the operation log file.

    Handlers from an earlier call are closed first, so calling this again
    with a new LogConfig moves the log without leaking file handles.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, config.storage_level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    logger.addHandler(
        OperationLogHandler(
            config.storage_log_path,
            max_bytes=config.max_file_size_bytes,
            backup_count=config.backup_count,
        )
    )
    logger.propagate = False
    return logger
