"""
did CLI - Typer Commands

    did                                   List today's entries
    did log fix login @acme #bug for 1h   Log a new entry
    did list week --project acme          List entries for a period
    did from 2024-01-01 to 2024-01-31     List entries between two dates
    did search login --last 30            Find entries by keyword
    did report @acme                      Report time for a project or tag
    did report --by tag                   Time grouped by tag
    did stats --month                     Totals and averages for this month
    did export csv -o hours.csv           Export entries as JSON or CSV
    did start review @acme                Start a timer
    did stop                              Log the running timer as an entry
    did status                            Show the running timer
    did cancel                            Discard the running timer
    did edit 2 --duration 45m             Edit an entry
    did delete 2                          Soft-delete an entry
    did undo                              Restore the last deleted entry
    did purge                             Permanently remove deleted entries
    did restore 2                         Restore the store from a backup
    did validate                          Check the storage file for corruption
    did config --init                     Write a sample config file
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from did.cli.format import (
    format_elapsed,
    format_entry_text,
    show_config,
    show_entry_list,
    show_entry_summary,
    show_grouped_report,
    show_health,
    show_report,
    show_search_results,
    show_stats,
    show_timer_status,
    show_warnings,
)
from did.config import DidConfig, load_config, write_sample_config
from did.exceptions import (
    BackupError,
    ConfigError,
    DidError,
    EntryIndexError,
    InputError,
    NoDeletedEntriesError,
    NoTimerError,
    TimerRunningError,
    TimerStateError,
)
from did.export import DEFAULT_FORMAT, EXPORT_FORMATS, render_export
from did.filter import EntryFilter
from did.parser import format_duration
from did.paths import get_config_path, get_storage_path, get_timer_path
from did.service import GROUPINGS, DateSpan, EntryService
from did.storage import available_backups, restore_from_backup, validate_storage
from did.timer import TimerService

logger = logging.getLogger(__name__)
console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="did",
    help="Log what you did and for how long, then look it back up by period, project or tag.",
    add_completion=False,
    invoke_without_command=True,
)


def _fail(message: str, hint: str | None = None) -> typer.Exit:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    if hint:
        err_console.print(f"[dim]Hint: {escape(hint)}[/dim]")
    return typer.Exit(1)


def _load_config() -> DidConfig:
    try:
        return load_config()
    except ConfigError as e:
        raise _fail(f"Configuration error: {e}", "Run 'did config' to see the config file location")


def _storage_path() -> str:
    try:
        return str(get_storage_path())
    except OSError as e:
        raise _fail(
            f"Failed to determine storage location: {e}",
            "Check that your home directory is accessible",
        )


def _service() -> EntryService:
    config = _load_config()
    return EntryService(_storage_path(), config)


def _read_failure(service: EntryService, error: OSError) -> typer.Exit:
    return _fail(
        f"Failed to read entries from storage: {error}",
        f"Check that the file is readable: {service.storage_path}",
    )


def _list(period: str, project: str, tags: list[str] | None, days: int | None) -> None:
    service = _service()
    entry_filter = EntryFilter(project=project or "", tags=list(tags or []))
    try:
        result = service.list_entries(
            period=period,
            entry_filter=None if entry_filter.is_empty() else entry_filter,
            days=days,
        )
    except ValueError as e:
        raise _fail(str(e))
    except OSError as e:
        raise _read_failure(service, e)

    show_warnings(err_console, result.warnings)
    show_entry_list(console, result)


@app.callback()
def callback(ctx: typer.Context) -> None:
    """
    Log what you did and for how long.

    Run without a command to list today's entries.
    """
    if ctx.invoked_subcommand is None:
        _list("today", "", None, None)


@app.command()
def log(
    words: list[str] = typer.Argument(..., help="'<description> for <duration>', e.g. fix bug @acme #urgent for 1h30m"),
) -> None:
    """Log a new entry."""
    service = _service()
    raw_input = " ".join(words)
    try:
        entry = service.create(raw_input)
    except InputError as e:
        raise _fail(
            str(e),
            "Usage: did log <description> for <duration>  (durations: 2h, 30m, 1h30m; max 24h)",
        )
    except OSError as e:
        raise _fail(
            f"Failed to save entry to storage: {e}",
            f"Check that the directory exists and is writable: {service.storage_path}",
        )

    show_entry_summary(console, "Logged", entry)


@app.command(name="list")
def list_command(
    period: str = typer.Argument("today", help="today, yesterday, week, lastweek, month, lastmonth"),
    project: str = typer.Option("", "--project", "-p", help="Only entries for this project"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Only entries with this tag (repeatable)"),
    last: int = typer.Option(None, "--last", "-n", min=1, help="Last N days including today"),
) -> None:
    """List entries for a period."""
    _list(period, project, tag, last)


@app.command(name="from")
def range_command(
    words: list[str] = typer.Argument(None, help="'<start-date> to <end-date>', e.g. 2024-01-01 to 2024-01-31"),
    project: str = typer.Option("", "--project", "-p", help="Only entries for this project"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Only entries with this tag (repeatable)"),
) -> None:
    """List entries between two dates (both included)."""
    usage = "Usage: did from <start-date> to <end-date>  (e.g. did from 2024-01-01 to 2024-01-31)"
    words = list(words or [])
    if "to" not in words:
        raise _fail("Missing 'to' keyword in date range", usage)
    split = words.index("to")
    start_text = " ".join(words[:split]).strip()
    end_text = " ".join(words[split + 1:]).strip()
    if not start_text:
        raise _fail("Missing start date", usage)
    if not end_text:
        raise _fail("Missing end date", usage)

    service = _service()
    entry_filter = EntryFilter(project=project or "", tags=list(tag or []))
    try:
        result = service.list_range(
            start_text,
            end_text,
            entry_filter=None if entry_filter.is_empty() else entry_filter,
        )
    except ValueError as e:
        raise _fail(str(e), "Dates use YYYY-MM-DD or DD/MM/YYYY, e.g. 2024-01-15 or 15/01/2024")
    except OSError as e:
        raise _read_failure(service, e)

    show_warnings(err_console, result.warnings)
    show_entry_list(console, result)


def _date_span(
    service: EntryService, from_date: str | None, to_date: str | None, last: int | None
) -> DateSpan | None:
    try:
        return service.date_span(from_date, to_date, last)
    except ValueError as e:
        raise _fail(str(e), "Use either --last N or --from/--to with dates like 2024-01-15 or 15/01/2024")


@app.command()
def search(
    keyword: str = typer.Argument(..., help="Text to look for in descriptions (case-insensitive)"),
    project: str = typer.Option("", "--project", "-p", help="Only entries for this project"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Only entries with this tag (repeatable)"),
    from_date: str = typer.Option(None, "--from", help="Start date (YYYY-MM-DD or DD/MM/YYYY)"),
    to_date: str = typer.Option(None, "--to", help="End date (YYYY-MM-DD or DD/MM/YYYY)"),
    last: int = typer.Option(None, "--last", "-n", min=1, help="Last N days including today"),
) -> None:
    """Find entries whose description contains a keyword."""
    if not keyword.strip():
        raise _fail("Search keyword cannot be empty", "Usage: did search <keyword>")

    service = _service()
    span = _date_span(service, from_date, to_date, last)
    entry_filter = EntryFilter(project=project or "", tags=list(tag or []))
    try:
        result = service.search(keyword, entry_filter, span)
    except OSError as e:
        raise _read_failure(service, e)

    show_warnings(err_console, result.warnings)
    entry_filter.keyword = result.query
    show_search_results(console, result, entry_filter.describe())


@app.command()
def report(
    target: str = typer.Argument(None, help="@project or #tag to report on"),
    by: str = typer.Option(None, "--by", help="Group time by 'project' or 'tag'"),
    project: str = typer.Option("", "--project", "-p", help="Report on this project"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Report on entries with this tag (repeatable)"),
    from_date: str = typer.Option(None, "--from", help="Start date (YYYY-MM-DD or DD/MM/YYYY)"),
    to_date: str = typer.Option(None, "--to", help="End date (YYYY-MM-DD or DD/MM/YYYY)"),
    last: int = typer.Option(None, "--last", "-n", min=1, help="Last N days including today"),
) -> None:
    """Report time for one project or tag, or grouped by all of them."""
    tags = list(tag or [])
    if target:
        target = target.strip()
        if target.startswith("@") and len(target) > 1:
            project = target[1:]
        elif target.startswith("#") and len(target) > 1:
            tags.append(target[1:])
        else:
            raise _fail(
                f"Invalid report target '{target}'",
                "Use @project or #tag, e.g. did report @acme",
            )

    if by is not None:
        if project or tags:
            raise _fail(
                "Cannot use --by with --project or --tag filters",
                "Use either 'did report --by project' or 'did report @project'",
            )
        if by.strip().lower() not in GROUPINGS:
            raise _fail("Invalid --by value. Must be 'project' or 'tag'", "Usage: did report --by project")
    elif not project and not tags:
        raise _fail(
            "No filters specified",
            "Usage: did report @project | did report #tag | did report --by project|tag",
        )

    service = _service()
    span = _date_span(service, from_date, to_date, last)
    try:
        if by is not None:
            data = service.report_grouped(by, span)
        else:
            data = service.report(project=project, tags=tags, span=span)
    except InputError as e:
        raise _fail(str(e))
    except OSError as e:
        raise _read_failure(service, e)

    show_warnings(err_console, data.warnings)
    if by is not None:
        show_grouped_report(console, data, by.strip().lower())
    else:
        show_report(console, data, EntryFilter(project=project, tags=tags).describe())


@app.command()
def stats(
    month: bool = typer.Option(False, "--month", "-m", help="This month instead of this week"),
    from_date: str = typer.Option(None, "--from", help="Start date (YYYY-MM-DD or DD/MM/YYYY)"),
    to_date: str = typer.Option(None, "--to", help="End date (YYYY-MM-DD or DD/MM/YYYY)"),
    last: int = typer.Option(None, "--last", "-n", min=1, help="Last N days including today"),
) -> None:
    """Show totals, averages and breakdowns for this week or month."""
    service = _service()
    span = _date_span(service, from_date, to_date, last)
    if span is not None and month:
        raise _fail("Cannot use --month with --from, --to or --last")

    try:
        if span is not None:
            result = service.stats_for_span(span)
        else:
            result = service.stats("month" if month else "week")
    except OSError as e:
        raise _read_failure(service, e)

    show_stats(console, result)


@app.command()
def export(
    fmt: str = typer.Argument(None, metavar="FORMAT", help="json or csv (default from config, else json)"),
    output: Path = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
    project: str = typer.Option("", "--project", "-p", help="Only entries for this project"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Only entries with this tag (repeatable)"),
    from_date: str = typer.Option(None, "--from", help="Start date (YYYY-MM-DD or DD/MM/YYYY)"),
    to_date: str = typer.Option(None, "--to", help="End date (YYYY-MM-DD or DD/MM/YYYY)"),
    last: int = typer.Option(None, "--last", "-n", min=1, help="Last N days including today"),
) -> None:
    """Export active entries as JSON or CSV."""
    service = _service()
    fmt = (fmt or service.config.default_output_format or DEFAULT_FORMAT).strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise _fail(f"Unknown export format '{fmt}'", f"Valid formats: {', '.join(EXPORT_FORMATS)}")

    span = _date_span(service, from_date, to_date, last)
    entry_filter = EntryFilter(project=project or "", tags=list(tag or []))
    try:
        selected = service.export_entries(
            None if entry_filter.is_empty() else entry_filter, span
        )
    except OSError as e:
        raise _read_failure(service, e)
    show_warnings(err_console, selected.warnings)

    criteria = entry_filter.criteria()
    if last is not None:
        criteria["last_days"] = last
    else:
        if from_date:
            criteria["from"] = f"{selected.start:%Y-%m-%d}"
        if to_date:
            criteria["to"] = f"{selected.end:%Y-%m-%d}"

    text = render_export(fmt, [item.entry for item in selected.entries], service.clock(), criteria)
    if output is None:
        console.print(text, end="", markup=False, emoji=False, highlight=False, soft_wrap=True)
        return

    try:
        output.write_text(text, encoding="utf-8")
    except OSError as e:
        raise _fail(f"Failed to write export file: {e}")
    err_console.print(
        f"[green]Exported {len(selected.entries)} entries to[/green] {escape(str(output))}",
        soft_wrap=True,
    )


def _timer_service() -> TimerService:
    try:
        timer_path = get_timer_path()
    except OSError as e:
        raise _fail(
            f"Failed to determine timer location: {e}",
            "Check that your home directory is accessible",
        )
    return TimerService(timer_path, _service())


@app.command()
def start(
    words: list[str] = typer.Argument(..., help="What you are working on, e.g. fix bug @acme #urgent"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace a timer that is already running"),
) -> None:
    """Start a timer for a task."""
    timers = _timer_service()
    try:
        state, previous = timers.start(" ".join(words), force=force)
    except TimerRunningError as e:
        now = timers.entries.clock()
        err_console.print("[yellow]Warning: A timer is already running[/yellow]")
        err_console.print(f"Current timer: {escape(format_entry_text(e.state))}")
        err_console.print(f"Started: {format_elapsed(now - e.state.started_at)} ago")
        err_console.print()
        err_console.print("Options:")
        err_console.print("  - Stop the current timer with 'did stop'")
        err_console.print("  - Override with 'did start <description> --force'")
        raise typer.Exit(1)
    except InputError as e:
        raise _fail(str(e), "Usage: did start <description>  (e.g. did start fixing bug @acme #urgent)")
    except TimerStateError as e:
        raise _fail(f"Failed to check timer status: {e}")
    except OSError as e:
        raise _fail(
            f"Failed to save timer state: {e}",
            f"Check that the directory is writable: {timers.store.path.parent}",
        )

    console.print(f"[green]Timer started:[/green] {escape(format_entry_text(state))}")
    if previous is not None:
        console.print("[dim](Previous timer was overwritten)[/dim]")


@app.command()
def stop() -> None:
    """Stop the timer and log the elapsed time."""
    timers = _timer_service()
    try:
        entry, _ = timers.stop()
    except NoTimerError:
        raise _fail("No timer is running", "Start a timer with 'did start <description>'")
    except (TimerStateError, InputError) as e:
        raise _fail(f"Failed to load timer state: {e}")
    except OSError as e:
        raise _fail(f"Failed to save entry: {e}")

    show_entry_summary(console, "Stopped", entry)


@app.command()
def status() -> None:
    """Show the running timer."""
    timers = _timer_service()
    try:
        timer_status = timers.status()
    except (TimerStateError, OSError) as e:
        raise _fail(f"Failed to load timer state: {e}")

    show_timer_status(console, timer_status, timers.entries.clock())


@app.command()
def cancel() -> None:
    """Discard the running timer without logging it."""
    timers = _timer_service()
    try:
        state = timers.cancel()
    except NoTimerError:
        raise _fail("No timer is running", "Start a timer with 'did start <description>'")
    except (TimerStateError, OSError) as e:
        raise _fail(f"Failed to cancel timer: {e}")

    console.print(f"[yellow]Timer cancelled:[/yellow] {escape(format_entry_text(state))}")


@app.command()
def edit(
    index: int = typer.Argument(..., help="Entry number as shown by 'did list'"),
    description: str = typer.Option(None, "--description", "-d", help="New description (may include @project and #tags)"),
    duration: str = typer.Option(None, "--duration", help="New duration, e.g. 2h, 30m, 1h30m"),
) -> None:
    """Edit the description or duration of an entry."""
    service = _service()
    try:
        entry = service.edit(index, description=description, duration=duration)
    except (InputError, EntryIndexError) as e:
        raise _fail(str(e))
    except OSError as e:
        raise _fail(f"Failed to save entry: {e}")

    show_entry_summary(console, "Updated", entry)


@app.command()
def delete(
    index: int = typer.Argument(..., help="Entry number as shown by 'did list'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete an entry (recoverable with 'did undo')."""
    service = _service()
    try:
        target = service.get_by_index(index)
    except EntryIndexError as e:
        raise _fail(str(e))
    except OSError as e:
        raise _fail(f"Failed to read entries: {e}")

    show_entry_summary(console, "Entry to delete", target.entry)
    if not yes and not typer.confirm("Delete this entry?", default=False):
        console.print("Deletion cancelled")
        return

    try:
        deleted = service.delete(index)
    except EntryIndexError as e:
        raise _fail(str(e))
    except OSError as e:
        raise _fail(f"Failed to delete entry: {e}")

    console.print(
        f"[green]Deleted:[/green] {escape(deleted.description)} "
        f"({format_duration(deleted.duration_minutes)})"
    )
    console.print("[dim]Use 'did undo' to restore it[/dim]")


@app.command()
def undo() -> None:
    """Restore the most recently deleted entry."""
    service = _service()
    try:
        entry = service.undo()
    except NoDeletedEntriesError as e:
        raise _fail(str(e), "Nothing to restore. Delete an entry first with 'did delete <index>'")
    except OSError as e:
        raise _fail(f"Failed to restore entry: {e}")

    show_entry_summary(console, "Restored", entry)


@app.command()
def purge(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Permanently remove all deleted entries."""
    service = _service()
    if not yes and not typer.confirm(
        "Permanently delete all soft-deleted entries? This cannot be undone.", default=False
    ):
        console.print("Purge cancelled")
        return

    try:
        count = service.purge()
    except OSError as e:
        raise _fail(f"Failed to purge entries: {e}")

    if count == 0:
        console.print("No deleted entries to purge")
    elif count == 1:
        console.print("Purged 1 entry")
    else:
        console.print(f"Purged {count} entries")


@app.command()
def restore(
    number: int = typer.Argument(1, help="Backup number, 1 is the most recent"),
) -> None:
    """Restore the storage file from a backup."""
    storage_path = _storage_path()
    backups = available_backups(storage_path)
    if not backups:
        console.print("No backups available")
        raise typer.Exit(1)

    console.print("Available backups:")
    for choice in backups:
        console.print(f"  {choice.describe()}", soft_wrap=True, markup=False)
    console.print()

    try:
        restored = restore_from_backup(storage_path, number)
    except BackupError as e:
        raise _fail(str(e))
    except OSError as e:
        raise _fail(f"Failed to restore backup: {e}")

    console.print(f"[green]Successfully restored from backup {restored.number}[/green]")
    console.print("[dim]The previous state was saved as backup 1[/dim]")


@app.command()
def validate() -> None:
    """Check the storage file for corrupted lines."""
    storage_path = _storage_path()
    try:
        health = validate_storage(storage_path)
    except OSError as e:
        raise _fail(f"Failed to validate storage: {e}")

    show_health(console, storage_path, health)
    if not health.is_healthy:
        raise typer.Exit(1)


@app.command()
def config(
    init: bool = typer.Option(False, "--init", help="Write a commented sample config file"),
    path: bool = typer.Option(False, "--path", help="Only print the config file path"),
) -> None:
    """Show the effective configuration."""
    config_path = get_config_path()

    if path:
        console.print(str(config_path), soft_wrap=True, markup=False)
        return

    if init:
        try:
            written = write_sample_config(config_path)
        except DidError as e:
            raise _fail(str(e))
        console.print(f"[green]Wrote sample config to[/green] {escape(str(written))}", soft_wrap=True)
        return

    show_config(console, str(config_path), _load_config(), config_path.exists())


def run() -> None:
    """Entry point wrapper that invokes the Typer app."""
    app()


if __name__ == "__main__":
    run()
