"""Shared fixtures: isolate the app directory and the operation log per test."""

from datetime import datetime, timedelta, timezone

import pytest

from did import paths
from did.entry import Entry
from did.logging import LogConfig, reset_loggers, set_config
from did.storage import EntryStore

UTC = timezone.utc


@pytest.fixture(autouse=True)
def isolated_app_dir(tmp_path, monkeypatch):
    """Point the path provider and the operation log at a temp directory."""
    monkeypatch.delenv("DID_HOME", raising=False)
    monkeypatch.delenv("DID_LOG_DIR", raising=False)

    app_dir = tmp_path / "app"
    paths.set_provider(paths.FixedPathProvider(app_dir))
    reset_loggers()
    set_config(LogConfig(log_dir=tmp_path / "logs"))
    yield app_dir
    reset_loggers()
    paths.reset_provider()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "entries.jsonl"


@pytest.fixture
def store(store_path):
    return EntryStore(store_path)


def make_entry(n: int = 0, **overrides) -> Entry:
    """Entry number n, one hour apart from 2024-01-15 09:00 UTC."""
    fields = {
        "timestamp": datetime(2024, 1, 15, 9, 0, tzinfo=UTC) + timedelta(hours=n),
        "description": f"task {n}",
        "duration_minutes": 30 + n,
        "raw_input": f"task {n} for {30 + n}m",
    }
    fields.update(overrides)
    return Entry(**fields)


class FakeClock:
    """Controllable clock for deterministic deleted_at stamps."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 2, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(name="make_entry")
def make_entry_fixture():
    return make_entry
