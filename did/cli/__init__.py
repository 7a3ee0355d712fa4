"""
did CLI components.

- typer_commands.py: CLI entry points (log, list, from, search, report, stats,
  export, start, stop, status, cancel, edit, delete, undo, purge, restore,
  validate, config)
- format.py: Rich rendering of entries, reports, statistics, the timer,
  warnings and health reports
"""

from did.cli.typer_commands import (
    app,
    cancel,
    config,
    delete,
    edit,
    export,
    list_command,
    log,
    purge,
    range_command,
    report,
    restore,
    run,
    search,
    start,
    stats,
    status,
    stop,
    undo,
    validate,
)

__all__ = [
    "app",
    "run",
    "log",
    "list_command",
    "range_command",
    "search",
    "report",
    "stats",
    "export",
    "start",
    "stop",
    "status",
    "cancel",
    "edit",
    "delete",
    "undo",
    "purge",
    "restore",
    "validate",
    "config",
]
