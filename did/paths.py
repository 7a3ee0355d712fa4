"""
did - Path Resolution

The application directory is resolved through a swappable PathProvider
so tests (and alternative front ends) never touch the real user
configuration directory.

Resolution order for the default provider:
    $DID_HOME
    $XDG_CONFIG_HOME/did
    ~/.config/did
"""

import os
from pathlib import Path
from typing import Protocol

APP_NAME = "did"
ENTRIES_FILE = "entries.jsonl"
CONFIG_FILE = "config.toml"
TIMER_FILE = "timer.json"


class PathProvider(Protocol):
    """Resolves the application directory and creates directories."""

    def user_config_dir(self) -> Path: ...

    def mkdir_all(self, path: Path) -> None: ...


class DefaultPathProvider:
    """Path provider backed by the environment and the real filesystem."""

    def user_config_dir(self) -> Path:
        if home := os.environ.get("DID_HOME"):
            return Path(home).expanduser()
        if xdg := os.environ.get("XDG_CONFIG_HOME"):
            return Path(xdg).expanduser() / APP_NAME
        return Path.home() / ".config" / APP_NAME

    def mkdir_all(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)


class FixedPathProvider:
    """Path provider rooted at an explicit directory."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def user_config_dir(self) -> Path:
        return self.base_dir

    def mkdir_all(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)


_provider: PathProvider = DefaultPathProvider()


def get_provider() -> PathProvider:
    """Get the process-wide path provider."""
    return _provider


def set_provider(provider: PathProvider) -> None:
    """Replace the process-wide path provider (useful for testing)."""
    global _provider
    _provider = provider


def reset_provider() -> None:
    """Restore the default path provider."""
    global _provider
    _provider = DefaultPathProvider()


def get_app_dir() -> Path:
    """Resolve the application directory, creating it if needed."""
    app_dir = _provider.user_config_dir()
    _provider.mkdir_all(app_dir)
    return app_dir


def get_storage_path() -> Path:
    """Path to the entries file."""
    return get_app_dir() / ENTRIES_FILE


def get_config_path() -> Path:
    """Path to the optional TOML configuration file."""
    return get_app_dir() / CONFIG_FILE


def get_timer_path() -> Path:
    """Path to the running-timer state file."""
    return get_app_dir() / TIMER_FILE
