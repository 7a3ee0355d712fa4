"""
did - Input Parsing

Turns "fix login bug @acme #urgent for 1h30m" into its parts:
description, project, tags and a duration in minutes.
"""

import re

from did.entry import MAX_DURATION_MINUTES
from did.exceptions import DurationError, EntryInputError

COMBINED_PATTERN = re.compile(r"^(\d+)h(\d+)m$")
SIMPLE_PATTERN = re.compile(r"^(\d+)(h|m)$")

# Project and tag names: letters, digits, hyphen, underscore
PROJECT_PATTERN = re.compile(r"@([a-zA-Z0-9_-]+)")
TAG_PATTERN = re.compile(r"#([a-zA-Z0-9_-]+)")
WHITESPACE_PATTERN = re.compile(r"\s+")

DURATION_SEPARATOR = " for "


def parse_duration(text: str) -> int:
    """
    Parse "2h", "30m" or "1h30m" into minutes.

    Raises:
        DurationError: On unknown format, zero, or more than 24 hours
    """
    value = text.strip().lower()

    if match := COMBINED_PATTERN.match(value):
        minutes = int(match.group(1)) * 60 + int(match.group(2))
    elif match := SIMPLE_PATTERN.match(value):
        amount = int(match.group(1))
        minutes = amount * 60 if match.group(2) == "h" else amount
    else:
        raise DurationError(
            f"invalid time format: expected Xh, Xm, or XhYm, got {text}", value=text
        )

    if minutes == 0:
        raise DurationError("invalid duration: duration cannot be zero", value=text)
    if minutes > MAX_DURATION_MINUTES:
        raise DurationError(
            f"invalid duration: exceeds maximum of 24 hours ({MAX_DURATION_MINUTES} minutes)",
            value=text,
        )
    return minutes


def parse_project_and_tags(description: str) -> tuple[str, str, list[str]]:
    """
    Extract @project and #tags from a description.

    The last @project wins; tags keep their order. Both are removed from
    the returned description and runs of whitespace are collapsed.

    Returns:
        (clean description, project, tags)
    """
    projects = PROJECT_PATTERN.findall(description)
    project = projects[-1] if projects else ""
    tags = TAG_PATTERN.findall(description)

    clean = PROJECT_PATTERN.sub("", description)
    clean = TAG_PATTERN.sub("", clean)
    clean = WHITESPACE_PATTERN.sub(" ", clean).strip()
    return clean, project, tags


def split_raw_input(raw_input: str) -> tuple[str, str]:
    """
    Split "<description> for <duration>" on the last " for ".

    Raises:
        EntryInputError: If there is no " for " or the description is empty
    """
    idx = raw_input.lower().rfind(DURATION_SEPARATOR)
    if idx == -1:
        raise EntryInputError(
            "missing 'for <duration>' in input",
            {"hint": "Usage: did log <description> for <duration>"},
        )

    description = raw_input[:idx].strip()
    duration = raw_input[idx + len(DURATION_SEPARATOR):].strip()
    if not description:
        raise EntryInputError("description cannot be empty")
    return description, duration


def format_duration(minutes: int) -> str:
    """Format minutes as "45m", "2h" or "1h 30m"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_duration_compact(minutes: int) -> str:
    """Format minutes in the input syntax: "45m", "2h", "1h30m"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h{mins}m"


def check_text(text: str) -> str:
    """
    Reject text that cannot be stored as UTF-8.

    Command-line arguments holding undecodable bytes arrive as lone
    surrogates, which would fail only when the entry is written.

    Raises:
        EntryInputError: If `text` contains lone surrogates
    """
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EntryInputError("input is not valid UTF-8 text") from e
    return text
