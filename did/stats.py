"""
did - Summary Statistics

Totals, per-day averages and project/tag breakdowns over a date range,
plus the wording used to compare one period with the one before it.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from did.entry import Entry
from did.parser import format_duration
from did.timeutil import is_in_range

NO_PROJECT = "(no project)"
NO_TAGS = "(no tags)"


@dataclass
class Statistics:
    """Aggregate figures for the active entries in one range."""

    total_minutes: int = 0
    average_minutes_per_day: float = 0.0
    entry_count: int = 0
    days_with_entries: int = 0


@dataclass
class Breakdown:
    """Time spent on one project or tag."""

    name: str
    total_minutes: int = 0
    entry_count: int = 0


@dataclass
class StatsResult:
    """Statistics for a period with breakdowns and an optional comparison."""

    statistics: Statistics = field(default_factory=Statistics)
    projects: list[Breakdown] = field(default_factory=list)
    tags: list[Breakdown] = field(default_factory=list)
    comparison: str = ""  # e.g. "up 2h 30m from last week"
    period: str = ""
    start: datetime | None = None
    end: datetime | None = None


def _in_range(entries: Iterable[Entry], start: datetime, end: datetime) -> list[Entry]:
    return [
        e for e in entries
        if e.deleted_at is None and is_in_range(e.timestamp, start, end)
    ]


def days_in_range(start: datetime, end: datetime) -> int:
    """Calendar days covered by [start, end]; a full week is 7."""
    return (end - start) // timedelta(days=1) + 1


def calculate_statistics(entries: Iterable[Entry], start: datetime, end: datetime) -> Statistics:
    """
    Total, count, distinct days and the average over every day in the range.

    Soft-deleted entries and entries outside [start, end] are ignored.
    """
    selected = _in_range(entries, start, end)
    total = sum(e.duration_minutes for e in selected)
    days = days_in_range(start, end)
    return Statistics(
        total_minutes=total,
        average_minutes_per_day=total / days if days > 0 else 0.0,
        entry_count=len(selected),
        days_with_entries=len({e.timestamp.date() for e in selected}),
    )


def project_breakdown(entries: Iterable[Entry], start: datetime, end: datetime) -> list[Breakdown]:
    """Time per project, largest first. Entries without one count as NO_PROJECT."""
    groups: dict[str, Breakdown] = {}
    for entry in _in_range(entries, start, end):
        _add(groups, entry.project or NO_PROJECT, entry)
    return _largest_first(groups)


def tag_breakdown(entries: Iterable[Entry], start: datetime, end: datetime) -> list[Breakdown]:
    """
    Time per tag, largest first.

    An entry with several tags counts in full towards each of them, so
    the rows can add up to more than the period total.
    """
    groups: dict[str, Breakdown] = {}
    for entry in _in_range(entries, start, end):
        for tag in entry.tags or [NO_TAGS]:
            _add(groups, tag, entry)
    return _largest_first(groups)


def _add(groups: dict[str, Breakdown], name: str, entry: Entry) -> None:
    group = groups.setdefault(name, Breakdown(name))
    group.total_minutes += entry.duration_minutes
    group.entry_count += 1


def _largest_first(groups: dict[str, Breakdown]) -> list[Breakdown]:
    # Stable sort keeps first-seen order among equal totals
    return sorted(groups.values(), key=lambda g: g.total_minutes, reverse=True)


def compare_statistics(current: Statistics, previous: Statistics) -> int:
    """Difference in total minutes, current minus previous."""
    return current.total_minutes - previous.total_minutes


def format_comparison(diff_minutes: int, period_name: str) -> str:
    """'up 2h 30m from last week', 'down 45m from last month' or 'same as last week'."""
    if diff_minutes == 0:
        return f"same as last {period_name}"
    direction = "up" if diff_minutes > 0 else "down"
    return f"{direction} {format_duration(abs(diff_minutes))} from last {period_name}"
