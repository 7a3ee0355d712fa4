"""
Operation log settings for did.

    DID_LOG_DIR          directory for storage.jsonl (default <app dir>/logs)
    DID_LOG_LEVEL        DEBUG, INFO, WARNING or ERROR
    DID_LOG_MAX_SIZE_MB  rotate storage.jsonl past this size
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from did.paths import get_provider

logger = logging.getLogger(__name__)

STORAGE_LOG_FILE = "storage.jsonl"
MB = 1024 * 1024


def _default_log_dir() -> Path:
    return get_provider().user_config_dir() / "logs"


@dataclass
class LogConfig:
    """Where the operation log goes and when it rotates."""

    log_dir: Path = field(default_factory=_default_log_dir)
    max_file_size_bytes: int = 5 * MB
    backup_count: int = 3  # rotated storage.jsonl.N files kept
    storage_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LogConfig":
        """Defaults overridden by DID_LOG_* environment variables."""
        config = cls()

        if level := os.environ.get("DID_LOG_LEVEL"):
            config.storage_level = level

        if log_dir := os.environ.get("DID_LOG_DIR"):
            config.log_dir = Path(log_dir).expanduser()

        if max_size := os.environ.get("DID_LOG_MAX_SIZE_MB"):
            try:
                config.max_file_size_bytes = int(max_size) * MB
            except ValueError:
                logger.warning(f"Ignoring DID_LOG_MAX_SIZE_MB={max_size!r}: not an integer")

        return config

    def ensure_log_dir(self) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def storage_log_path(self) -> Path:
        return self.log_dir / STORAGE_LOG_FILE


# Process-wide config, read from the environment on first use
_config: LogConfig | None = None


def get_config() -> LogConfig:
    """Get the global log config, initializing from env if needed."""
    global _config
    if _config is None:
        _config = LogConfig.from_env()
        _config.ensure_log_dir()
    return _config


def set_config(config: LogConfig) -> None:
    """Replace the global log config (tests point it at a temp directory)."""
    global _config
    _config = config
    _config.ensure_log_dir()
