"""
did - Entry Service

Business operations behind the CLI. Users address entries by a 1-based
index among active (not deleted) entries; the service maps that to the
0-based storage index the storage layer works with.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from did.config import DidConfig
from did.entry import MAX_DURATION_MINUTES, Entry
from did.exceptions import EntryIndexError, EntryInputError
from did.filter import EntryFilter
from did.parser import (
    check_text,
    format_duration_compact,
    parse_duration,
    parse_project_and_tags,
    split_raw_input,
)
from did.storage import DeletionLifecycle, EntryStore, ParseWarning
from did.storage.lifecycle import Clock
from did.stats import (
    Breakdown,
    StatsResult,
    calculate_statistics,
    compare_statistics,
    format_comparison,
    project_breakdown,
    tag_breakdown,
)
from did.timeutil import (
    BEGINNING,
    END_OF_TIME,
    custom_range,
    is_in_range,
    last_days,
    last_month,
    last_week,
    resolve_date_options,
    resolve_range,
    start_of_day,
    this_month,
    this_week,
)

logger = logging.getLogger(__name__)


@dataclass
class IndexedEntry:
    """An entry with its user-facing and storage positions."""

    entry: Entry
    active_index: int  # 1-based among active entries
    storage_index: int  # 0-based line position among decodable entries


@dataclass
class ListResult:
    """Entries selected for display."""

    entries: list[IndexedEntry] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)
    period: str = ""
    start: datetime | None = None
    end: datetime | None = None
    total_minutes: int = 0


@dataclass
class SearchResult:
    """Entries matching a keyword, newest first."""

    entries: list[IndexedEntry] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)
    query: str = ""
    period: str = ""

    @property
    def total(self) -> int:
        return len(self.entries)


@dataclass
class ReportData:
    """A report over a period: matching entries, or time grouped by project or tag."""

    groups: list[Breakdown] = field(default_factory=list)
    entries: list[IndexedEntry] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)
    total_minutes: int = 0
    entry_count: int = 0
    period: str = ""
    start: datetime | None = None
    end: datetime | None = None


# (period label, start, end)
DateSpan = tuple[str, datetime, datetime]

ALL_TIME: DateSpan = ("all time", BEGINNING, END_OF_TIME)

GROUPINGS = {
    "project": project_breakdown,
    "tag": tag_breakdown,
}


class EntryService:
    """
    Create, list, edit, delete and restore entries, and search, report
    on and summarize them.

    Args:
        storage_path: Path to the entries file
        config: Loaded configuration
        clock: Source of the current time; defaults to now in the
            configured timezone
    """

    def __init__(
        self,
        storage_path: str | Path,
        config: DidConfig | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or DidConfig()
        self.clock = clock or self._configured_now
        self.store = EntryStore(storage_path)
        self.lifecycle = DeletionLifecycle(self.store, clock=self.clock)

    def _configured_now(self) -> datetime:
        tz = self.config.tzinfo
        if tz is None:
            return datetime.now().astimezone()
        return datetime.now(tz)

    @property
    def storage_path(self) -> Path:
        return self.store.path

    def create(self, raw_input: str) -> Entry:
        """
        Parse "<description> for <duration>" and append a new entry.

        Raises:
            EntryInputError: If the duration separator or description is missing
            DurationError: If the duration cannot be parsed
        """
        description, duration_text = split_raw_input(check_text(raw_input))
        clean, project, tags = parse_project_and_tags(description)
        if not clean:
            raise EntryInputError("description cannot be empty")

        entry = Entry(
            timestamp=self.clock(),
            description=clean,
            duration_minutes=parse_duration(duration_text),
            raw_input=raw_input,
            project=project,
            tags=tags,
        )
        self.store.append(entry)
        return entry

    def create_from_parts(
        self,
        description: str,
        duration_minutes: int,
        project: str = "",
        tags: list[str] | None = None,
    ) -> Entry:
        """Append an entry from already-parsed parts (used by the timer)."""
        check_text(description)
        for text in (project, *(tags or [])):
            check_text(text)
        if not description:
            raise EntryInputError("description cannot be empty")
        if duration_minutes <= 0 or duration_minutes > MAX_DURATION_MINUTES:
            raise EntryInputError(
                f"invalid duration: must be 1-{MAX_DURATION_MINUTES} minutes",
                {"duration_minutes": duration_minutes},
            )

        entry = Entry(
            timestamp=self.clock(),
            description=description,
            duration_minutes=duration_minutes,
            project=project,
            tags=list(tags or []),
        )
        entry.raw_input = build_raw_input(entry)
        self.store.append(entry)
        return entry

    def list_entries(
        self,
        period: str = "today",
        entry_filter: EntryFilter | None = None,
        days: int | None = None,
    ) -> ListResult:
        """
        Active entries in a period, sorted by time.

        Args:
            period: Named range (today, yesterday, week, lastweek, month, lastmonth)
            entry_filter: Optional project/tag filter
            days: When given, the last N days including today (overrides period)

        Raises:
            ValueError: If the period name is unknown
        """
        now = self.clock()
        if days is not None:
            start, end = last_days(days, now)
            label = f"last {days} days"
        else:
            label, start, end = resolve_range(period, now, self.config.week_start_day)
        return self._select((label, start, end), entry_filter)

    def list_range(
        self,
        start_text: str,
        end_text: str,
        entry_filter: EntryFilter | None = None,
    ) -> ListResult:
        """
        Active entries between two dates, both days included.

        Dates are YYYY-MM-DD or DD/MM/YYYY in the configured timezone.

        Raises:
            ValueError: If a date is invalid or the start is after the end
        """
        return self._select(custom_range(start_text, end_text, self.clock().tzinfo), entry_filter)

    def date_span(
        self,
        from_text: str | None = None,
        to_text: str | None = None,
        last: int | None = None,
    ) -> DateSpan | None:
        """
        Resolve --from/--to/--last options against the service clock.

        Returns:
            (period, start, end), or None when no option is given

        Raises:
            ValueError: If the options conflict or a date is invalid
        """
        return resolve_date_options(from_text, to_text, last, now=self.clock())

    def search(
        self,
        keyword: str = "",
        entry_filter: EntryFilter | None = None,
        span: DateSpan | None = None,
    ) -> SearchResult:
        """
        Active entries whose description contains `keyword`, newest first.

        The keyword match is case-insensitive. Entries keep their list
        index so results can be passed to edit and delete.
        """
        combined = EntryFilter(
            project=entry_filter.project if entry_filter else "",
            tags=list(entry_filter.tags) if entry_filter else [],
            keyword=keyword.strip(),
        )
        selected = self._select(span or ALL_TIME, combined)
        return SearchResult(
            entries=sorted(
                selected.entries,
                key=lambda item: _sort_key(item.entry.timestamp),
                reverse=True,
            ),
            warnings=selected.warnings,
            query=combined.keyword,
            period=selected.period,
        )

    def report(
        self,
        project: str = "",
        tags: list[str] | None = None,
        span: DateSpan | None = None,
    ) -> ReportData:
        """
        Entries and totals for one project and/or set of tags.

        Raises:
            EntryInputError: If neither a project nor a tag is given
        """
        entry_filter = EntryFilter(project=project, tags=list(tags or []))
        if entry_filter.is_empty():
            raise EntryInputError("a project or tag is required for a report")

        selected = self._select(span or ALL_TIME, entry_filter)
        return ReportData(
            entries=selected.entries,
            warnings=selected.warnings,
            total_minutes=selected.total_minutes,
            entry_count=len(selected.entries),
            period=selected.period,
            start=selected.start,
            end=selected.end,
        )

    def report_grouped(self, by: str, span: DateSpan | None = None) -> ReportData:
        """
        Time per project or per tag, largest first.

        Raises:
            ValueError: If `by` is not 'project' or 'tag'
        """
        grouping = GROUPINGS.get(by.strip().lower())
        if grouping is None:
            raise ValueError(f"invalid grouping '{by}': must be 'project' or 'tag'")

        selected = self._select(span or ALL_TIME)
        entries = [item.entry for item in selected.entries]
        return ReportData(
            groups=grouping(entries, selected.start, selected.end),
            warnings=selected.warnings,
            total_minutes=selected.total_minutes,
            entry_count=len(entries),
            period=selected.period,
            start=selected.start,
            end=selected.end,
        )

    def stats(self, period: str = "week") -> StatsResult:
        """
        Statistics for this week or this month, compared with the previous one.

        Raises:
            ValueError: If period is not 'week' or 'month'
        """
        now = self.clock()
        if period == "week":
            week_start = self.config.week_start_day
            current, previous = this_week(now, week_start), last_week(now, week_start)
        elif period == "month":
            current, previous = this_month(now), last_month(now)
        else:
            raise ValueError(f"invalid stats period '{period}': must be 'week' or 'month'")

        entries = self.store.read_active().entries
        result = _stats_for(entries, f"this {period}", *current)
        before = calculate_statistics(entries, *previous)
        result.comparison = format_comparison(
            compare_statistics(result.statistics, before), period
        )
        return result

    def stats_for_span(self, span: DateSpan) -> StatsResult:
        """Statistics for an explicit range, without a comparison."""
        label, start, end = span
        entries = self.store.read_active().entries
        if start == BEGINNING:
            # Average over the days since the first entry, not since year 1
            in_range = [e for e in entries if is_in_range(e.timestamp, start, end)]
            if in_range:
                start = start_of_day(min(_sort_key(e.timestamp) for e in in_range))
        return _stats_for(entries, label, start, end)

    def export_entries(
        self,
        entry_filter: EntryFilter | None = None,
        span: DateSpan | None = None,
    ) -> ListResult:
        """Active entries selected for export, in file order."""
        selected = self._select(span or ALL_TIME, entry_filter)
        selected.entries.sort(key=lambda item: item.storage_index)
        return selected

    def _select(self, span: DateSpan, entry_filter: EntryFilter | None = None) -> ListResult:
        label, start, end = span
        read = self.store.read_all()
        selected = [
            item
            for item in _index_active(read.entries)
            if is_in_range(item.entry.timestamp, start, end)
            and (entry_filter is None or entry_filter.matches(item.entry))
        ]
        selected.sort(key=lambda item: _sort_key(item.entry.timestamp))

        return ListResult(
            entries=selected,
            warnings=read.warnings,
            period=label,
            start=start,
            end=end,
            total_minutes=sum(item.entry.duration_minutes for item in selected),
        )

    def get_by_index(self, user_index: int) -> IndexedEntry:
        """
        Look up an active entry by its 1-based index.

        Raises:
            EntryIndexError: If no active entry has that index
        """
        indexed = _index_active(self.store.read_entries())
        return _pick(indexed, user_index)

    def edit(
        self,
        user_index: int,
        description: str | None = None,
        duration: str | None = None,
    ) -> Entry:
        """
        Change the description and/or duration of an active entry.

        A new description replaces the project and tags as well.

        Raises:
            EntryInputError: If nothing to change or the description is empty
            EntryIndexError: If the index is out of range
            DurationError: If the duration cannot be parsed
        """
        if not description and not duration:
            raise EntryInputError("at least one change must be specified")

        target = self.get_by_index(user_index)
        entry = target.entry

        if description:
            clean, project, tags = parse_project_and_tags(check_text(description))
            if not clean:
                raise EntryInputError("description cannot be empty")
            entry.description = clean
            entry.project = project
            entry.tags = tags

        if duration:
            entry.duration_minutes = parse_duration(duration)

        entry.raw_input = build_raw_input(entry)
        self.store.update_at(target.storage_index, entry)
        return entry

    def delete(self, user_index: int) -> Entry:
        """
        Soft-delete an active entry, then purge expired deletions.

        Raises:
            EntryIndexError: If the index is out of range
        """
        target = self.get_by_index(user_index)
        deleted = self.lifecycle.soft_delete(target.storage_index)

        try:
            purged = self.lifecycle.purge_older_than(self.config.retention)
        except OSError as e:
            logger.warning(f"Automatic purge of old deleted entries failed: {e}")
        else:
            if purged:
                logger.info(f"Purged {purged} entries deleted more than {self.config.retention_days} days ago")

        return deleted

    def undo(self) -> Entry:
        """
        Restore the most recently deleted entry.

        Raises:
            NoDeletedEntriesError: If nothing is deleted
        """
        return self.lifecycle.undo()

    def purge(self) -> int:
        """Permanently remove all deleted entries; returns how many."""
        return self.lifecycle.purge_deleted()


def build_raw_input(entry: Entry) -> str:
    """Rebuild the input line an entry would have been logged with."""
    text = entry.description
    if entry.project:
        text += f" @{entry.project}"
    for tag in entry.tags:
        text += f" #{tag}"
    return f"{text} for {format_duration_compact(entry.duration_minutes)}"


def _index_active(entries: list[Entry]) -> list[IndexedEntry]:
    indexed = []
    for storage_index, entry in enumerate(entries):
        if entry.deleted_at is None:
            indexed.append(IndexedEntry(entry, len(indexed) + 1, storage_index))
    return indexed


def _pick(indexed: list[IndexedEntry], user_index: int) -> IndexedEntry:
    if not indexed:
        raise EntryIndexError("no entries found", index=user_index, count=0)
    if user_index < 1 or user_index > len(indexed):
        raise EntryIndexError(
            f"index {user_index} out of range: valid range is 1-{len(indexed)}",
            index=user_index,
            count=len(indexed),
        )
    return indexed[user_index - 1]


def _sort_key(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.astimezone()


def _stats_for(entries: list[Entry], label: str, start: datetime, end: datetime) -> StatsResult:
    return StatsResult(
        statistics=calculate_statistics(entries, start, end),
        projects=project_breakdown(entries, start, end),
        tags=tag_breakdown(entries, start, end),
        period=label,
        start=start,
        end=end,
    )
