"""
did - Entry Export

Renders entries as pretty-printed JSON with export metadata, or as CSV
for spreadsheets:

    date,description,duration_minutes,duration_hours,project,tags
    2024-01-15,fix login,90,1.50,acme,bug;urgent
"""

import csv
import io
import json
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from did.entry import Entry

EXPORT_FORMATS = ("json", "csv")
DEFAULT_FORMAT = "json"

CSV_HEADERS = ["date", "description", "duration_minutes", "duration_hours", "project", "tags"]
CSV_TAG_SEPARATOR = ";"


def export_json(
    entries: Iterable[Entry],
    exported_at: datetime,
    criteria: dict[str, Any] | None = None,
) -> str:
    """
    JSON document with a metadata block and the entries in storage shape.

    Args:
        entries: Entries to export, in output order
        exported_at: Timestamp recorded as metadata.export_timestamp
        criteria: Filters that selected the entries (recorded as-is)
    """
    entries = list(entries)
    document = {
        "metadata": {
            "export_timestamp": exported_at.isoformat(),
            "total_entries": len(entries),
            "filter_criteria": dict(criteria or {}),
        },
        "entries": [entry.to_dict() for entry in entries],
    }
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def export_csv(entries: Iterable[Entry]) -> str:
    """One CSV row per entry; tags joined with ';', hours to two decimals."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for entry in entries:
        writer.writerow(
            [
                entry.timestamp.strftime("%Y-%m-%d"),
                entry.description,
                entry.duration_minutes,
                f"{entry.duration_minutes / 60:.2f}",
                entry.project,
                CSV_TAG_SEPARATOR.join(entry.tags),
            ]
        )
    return buffer.getvalue()


def render_export(
    fmt: str,
    entries: Iterable[Entry],
    exported_at: datetime,
    criteria: dict[str, Any] | None = None,
) -> str:
    """
    Render entries in the named format.

    Raises:
        ValueError: If the format is not one of EXPORT_FORMATS
    """
    name = fmt.strip().lower()
    if name == "json":
        return export_json(entries, exported_at, criteria)
    if name == "csv":
        return export_csv(entries)
    raise ValueError(f"Unknown export format '{fmt}'. Valid formats: {', '.join(EXPORT_FORMATS)}")
