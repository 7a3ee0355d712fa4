"""
did - Running Timer

`did start` records what is being worked on in timer.json; `did stop`
turns the elapsed time into a regular entry and removes the file. At
most one timer runs at a time. A missing file means no timer.

    {"started_at": "2024-01-15T09:00:00+01:00", "description": "review", "project": "acme"}
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from did.entry import MAX_DURATION_MINUTES, Entry
from did.exceptions import (
    EntryInputError,
    NoTimerError,
    TimerRunningError,
    TimerStateError,
)
from did.logging import record_operation
from did.parser import check_text, parse_project_and_tags
from did.service import EntryService
from did.storage import write_atomic

logger = logging.getLogger(__name__)


@dataclass
class TimerState:
    """What the running timer is tracking and since when."""

    started_at: datetime
    description: str
    project: str = ""
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "started_at": self.started_at.isoformat(),
            "description": self.description,
        }
        if self.project:
            data["project"] = self.project
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimerState":
        """
        Rebuild from the timer file.

        Raises:
            TimerStateError: If a field is missing or has the wrong type
        """
        try:
            started_at = datetime.fromisoformat(data["started_at"])
            description = data["description"]
            project = data.get("project") or ""
            tags = list(data.get("tags") or [])
        except (KeyError, TypeError, ValueError) as e:
            raise TimerStateError(f"invalid timer state: {e}") from e
        if started_at.tzinfo is None:
            started_at = started_at.astimezone()
        if not isinstance(description, str) or not isinstance(project, str):
            raise TimerStateError("invalid timer state: text fields must be strings")
        if not all(isinstance(tag, str) for tag in tags):
            raise TimerStateError("invalid timer state: tags must be strings")
        return cls(started_at=started_at, description=description, project=project, tags=tags)


@dataclass
class TimerStatus:
    """Whether a timer runs, and for how long."""

    running: bool
    state: TimerState | None = None
    elapsed: timedelta = timedelta(0)


class TimerStore:
    """Load, save and clear the timer file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> TimerState | None:
        """
        The running timer, or None when the file does not exist.

        Raises:
            TimerStateError: If the file holds something other than a timer
            OSError: If the file exists but cannot be read
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise TimerStateError(f"timer file {self.path} is not valid JSON", {"error": str(e)}) from e
        if not isinstance(data, dict):
            raise TimerStateError(f"timer file {self.path} does not hold a JSON object")
        return TimerState.from_dict(data)

    def save(self, state: TimerState) -> None:
        """Write the timer file atomically."""
        content = json.dumps(state.to_dict(), indent=2, ensure_ascii=False) + "\n"
        write_atomic(self.path, content.encode("utf-8"))

    def clear(self) -> None:
        """Remove the timer file; a missing file is not an error."""
        self.path.unlink(missing_ok=True)


def elapsed_minutes(elapsed: timedelta) -> int:
    """Elapsed time rounded to whole minutes, never less than one."""
    return max(1, round(elapsed / timedelta(minutes=1)))


class TimerService:
    """
    Start, stop, cancel and inspect the running timer.

    Args:
        timer_path: Path to timer.json
        entries: Service that stores the entry a stopped timer produces;
            its clock is used for start and stop times
    """

    def __init__(self, timer_path: str | Path, entries: EntryService):
        self.store = TimerStore(timer_path)
        self.entries = entries

    def start(self, description: str, force: bool = False) -> tuple[TimerState, TimerState | None]:
        """
        Start timing `description` (which may carry @project and #tags).

        Returns:
            (new timer, timer it replaced or None)

        Raises:
            EntryInputError: If the description is empty
            TimerRunningError: If a timer already runs and force is False
        """
        clean, project, tags = parse_project_and_tags(check_text(description.strip()))
        if not clean:
            raise EntryInputError("description cannot be empty")

        previous = self.store.load()
        if previous is not None and not force:
            raise TimerRunningError("timer is already running", state=previous)

        state = TimerState(
            started_at=self.entries.clock(),
            description=clean,
            project=project,
            tags=tags,
        )
        self.store.save(state)
        record_operation("timer_start", self.store.path)
        return state, previous

    def stop(self) -> tuple[Entry, TimerState]:
        """
        Stop the timer and log its elapsed time as an entry.

        The timer file is removed only after the entry has been stored.

        Raises:
            NoTimerError: If no timer is running
        """
        state = self._require_running()
        minutes = elapsed_minutes(self.entries.clock() - state.started_at)
        if minutes > MAX_DURATION_MINUTES:
            logger.warning(
                f"Timer ran {minutes} minutes; logging the {MAX_DURATION_MINUTES}-minute maximum"
            )
            minutes = MAX_DURATION_MINUTES

        entry = self.entries.create_from_parts(
            state.description, minutes, project=state.project, tags=state.tags
        )
        self.store.clear()
        record_operation("timer_stop", self.store.path)
        return entry, state

    def cancel(self) -> TimerState:
        """
        Discard the running timer without logging anything.

        Raises:
            NoTimerError: If no timer is running
        """
        state = self._require_running()
        self.store.clear()
        record_operation("timer_cancel", self.store.path)
        return state

    def status(self) -> TimerStatus:
        state = self.store.load()
        if state is None:
            return TimerStatus(running=False)
        return TimerStatus(
            running=True,
            state=state,
            elapsed=self.entries.clock() - state.started_at,
        )

    def _require_running(self) -> TimerState:
        state = self.store.load()
        if state is None:
            raise NoTimerError("no timer is running")
        return state
