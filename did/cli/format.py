"""
did CLI - Output Formatting

Rich rendering for entry lists, searches, reports, statistics, the
timer, corruption warnings and health reports.
"""

from datetime import datetime, timedelta

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from did.config import DidConfig
from did.entry import Entry
from did.parser import format_duration
from did.service import IndexedEntry, ListResult, ReportData, SearchResult
from did.stats import NO_PROJECT, NO_TAGS, StatsResult
from did.storage import ParseWarning, StorageHealth
from did.timer import TimerState, TimerStatus

RULE_WIDTH = 50


def format_entry_text(entry: Entry | TimerState) -> str:
    """Description with project and tags in input syntax."""
    text = entry.description
    if entry.project:
        text += f" @{entry.project}"
    for tag in entry.tags:
        text += f" #{tag}"
    return text


def format_corruption_warning(warning: ParseWarning) -> str:
    """'  Line N: <content truncated to 50 chars> (error: ...)'."""
    return f"  Line {warning.line_number}: {warning.preview()} (error: {warning.error})"


def show_warnings(console: Console, warnings: list[ParseWarning]) -> None:
    """Print decode warnings; reads still succeed when these are present."""
    if not warnings:
        return
    console.print(
        f"[yellow]Warning: Found {len(warnings)} corrupted line(s) in storage file:[/yellow]"
    )
    for warning in warnings:
        console.print(escape(format_corruption_warning(warning)), soft_wrap=True)
    console.print()


def show_entry_list(console: Console, result: ListResult) -> None:
    """Numbered entries for a period plus the total."""
    if not result.entries:
        console.print(f"[dim]No entries found for {result.period}[/dim]")
        return

    multi_day = (
        result.start is not None
        and result.end is not None
        and result.start.date() != result.end.date()
    )
    time_format = "%Y-%m-%d %H:%M" if multi_day else "%H:%M"

    table = Table(
        title=f"Entries for {result.period}",
        show_header=True,
        header_style="bold",
        title_justify="left",
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Time", style="cyan")
    table.add_column("Description")
    table.add_column("Duration", style="green", justify="right")

    for item in result.entries:
        table.add_row(*_entry_row(item, time_format))

    console.print(table)
    console.print(f"[bold]Total:[/bold] {format_duration(result.total_minutes)}")


def _entry_row(item: IndexedEntry, time_format: str) -> tuple[str, str, str, str]:
    entry = item.entry
    return (
        str(item.active_index),
        entry.timestamp.strftime(time_format),
        escape(format_entry_text(entry)),
        format_duration(entry.duration_minutes),
    )


def show_entry_summary(console: Console, verb: str, entry: Entry) -> None:
    """'<Verb>: description (duration)' followed by the entry timestamp."""
    console.print(
        f"[green]{verb}:[/green] {escape(format_entry_text(entry))} "
        f"({format_duration(entry.duration_minutes)})"
    )
    console.print(f"  [dim]Timestamp: {entry.timestamp.strftime('%Y-%m-%d %H:%M')}[/dim]")


def show_health(console: Console, storage_path: str, health: StorageHealth) -> None:
    """Health report for `did validate`."""
    console.print(f"Storage file: {storage_path}", soft_wrap=True, markup=False)
    console.print("=" * RULE_WIDTH)
    console.print(f"Total lines:       {health.total_lines}")
    console.print(f"Valid entries:     {health.valid_entries}")
    console.print(f"Corrupted entries: {health.corrupted_entries}")

    if health.warnings:
        console.print("=" * RULE_WIDTH)
        console.print("Corrupted lines:")
        for warning in health.warnings:
            console.print(escape(format_corruption_warning(warning)), soft_wrap=True)

    console.print("=" * RULE_WIDTH)
    if health.is_healthy:
        console.print("[green]Status: ✓ Storage file is healthy[/green]")
    else:
        console.print(
            f"[yellow]Status: ⚠ Storage file has {health.corrupted_entries} corrupted line(s)[/yellow]"
        )


def show_config(console: Console, config_path: str, config: DidConfig, exists: bool) -> None:
    """Effective configuration as a table."""
    source = config_path if exists else f"{config_path} (not found, using defaults)"
    console.print(f"Config file: {source}", soft_wrap=True, markup=False)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, escape(repr(value) if isinstance(value, str) else str(value)))
    console.print(table)


def pluralize(word: str, count: int) -> str:
    """'entry' -> 'entries' and 'day' -> 'days' unless count is 1."""
    if count == 1:
        return word
    if word.endswith("y") and word[-2:-1] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


def _dated_table(title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold", title_justify="left")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Description")
    table.add_column("Duration", style="green", justify="right")
    return table


def show_search_results(console: Console, result: SearchResult, description: str) -> None:
    """Matches newest first, numbered by their 'did list' index."""
    if not result.entries:
        console.print(f"[dim]No entries found matching {escape(description)}[/dim]")
        return

    table = _dated_table(
        f"Search results for {escape(description)} "
        f"({result.total} {pluralize('result', result.total)})"
    )
    for item in result.entries:
        table.add_row(*_entry_row(item, "%Y-%m-%d %H:%M"))
    console.print(table)
    total = sum(item.entry.duration_minutes for item in result.entries)
    console.print(
        f"[bold]Total:[/bold] {format_duration(total)} "
        f"({result.total} {pluralize('entry', result.total)})"
    )


def show_report(console: Console, report: ReportData, subject: str) -> None:
    """Entries for one project or tag set, with totals."""
    if not report.entries:
        console.print(f"[dim]No entries found for {escape(subject)} ({report.period})[/dim]")
        return

    table = _dated_table(f"Report for {escape(subject)} ({report.period})")
    for position, item in enumerate(report.entries, start=1):
        row = _entry_row(item, "%Y-%m-%d %H:%M")
        table.add_row(str(position), *row[1:])
    console.print(table)
    console.print(
        f"[bold]Total:[/bold] {format_duration(report.total_minutes)} "
        f"({report.entry_count} {pluralize('entry', report.entry_count)})"
    )


def show_grouped_report(console: Console, report: ReportData, by: str) -> None:
    """Time per project or tag, largest first, with a total row."""
    if not report.groups:
        console.print(f"[dim]No entries found for {report.period}[/dim]")
        return

    marker, placeholder = ("@", NO_PROJECT) if by == "project" else ("#", NO_TAGS)
    table = Table(
        title=f"Time by {by} ({report.period})",
        show_header=True,
        header_style="bold",
        title_justify="left",
        show_footer=True,
    )
    table.add_column(by.capitalize(), footer="Total")
    table.add_column(
        "Time", style="green", justify="right", footer=format_duration(report.total_minutes)
    )
    table.add_column(
        "Entries",
        justify="right",
        footer=f"{report.entry_count} {pluralize('entry', report.entry_count)}",
    )

    for group in report.groups:
        name = group.name if group.name == placeholder else f"{marker}{group.name}"
        table.add_row(
            escape(name),
            format_duration(group.total_minutes),
            f"{group.entry_count} {pluralize('entry', group.entry_count)}",
        )
    console.print(table)


def show_stats(console: Console, result: StatsResult) -> None:
    """Totals, averages and breakdowns for `did stats`."""
    stats = result.statistics
    console.print(f"[bold]Statistics for {result.period}:[/bold]")
    console.print("=" * RULE_WIDTH)
    console.print(f"Total time:      {format_duration(stats.total_minutes)}")
    console.print(f"Total entries:   {stats.entry_count} {pluralize('entry', stats.entry_count)}")
    console.print(
        f"Days with work:  {stats.days_with_entries} {pluralize('day', stats.days_with_entries)}"
    )
    console.print(f"Average per day: {format_duration(int(stats.average_minutes_per_day))}")

    if result.comparison:
        console.print("-" * RULE_WIDTH)
        console.print(f"Comparison: {result.comparison}")

    for title, rows, marker, placeholder in (
        ("By project", result.projects, "@", NO_PROJECT),
        ("By tag", result.tags, "#", NO_TAGS),
    ):
        if not rows:
            continue
        table = Table(title=title, show_header=False, title_justify="left", box=None)
        table.add_column("Name")
        table.add_column("Time", style="green", justify="right")
        table.add_column("Entries", style="dim", justify="right")
        for row in rows:
            name = row.name if row.name == placeholder else f"{marker}{row.name}"
            table.add_row(
                escape(name),
                format_duration(row.total_minutes),
                f"{row.entry_count} {pluralize('entry', row.entry_count)}",
            )
        console.print()
        console.print(table)


def format_timer_start(started_at: datetime, now: datetime) -> str:
    """'today at 9:05 AM' or 'Mon Jan 15 at 9:05 AM'."""
    clock = started_at.strftime("%I:%M %p").lstrip("0")
    if started_at.date() == now.date():
        return f"today at {clock}"
    return f"{started_at:%a %b} {started_at.day} at {clock}"


def format_elapsed(elapsed: timedelta) -> str:
    """Whole minutes as '45m', '2h' or '1h 5m'; never negative."""
    minutes = max(0, int(elapsed / timedelta(minutes=1)))
    return format_duration(minutes)


def show_timer_status(console: Console, status: TimerStatus, now: datetime) -> None:
    if not status.running or status.state is None:
        console.print("No timer running")
        console.print("[dim]Start a timer with: did start <description>[/dim]")
        return

    console.print("[bold]Timer running:[/bold]")
    console.print(f"  {escape(format_entry_text(status.state))}")
    console.print(f"  Started: {format_timer_start(status.state.started_at, now)}")
    console.print(f"  Elapsed: {format_elapsed(status.elapsed)}")
