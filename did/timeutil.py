"""
did - Date Ranges

Every range is a closed interval [start, end] of timezone-aware datetimes,
with end at 23:59:59.999999 of the last day.
"""

import re
from collections.abc import Callable
from datetime import datetime, time, timedelta, timezone, tzinfo

WEEKDAYS = {"monday": 0, "sunday": 6}

Range = tuple[datetime, datetime]


def _now() -> datetime:
    return datetime.now().astimezone()


def start_of_day(ts: datetime) -> datetime:
    return datetime.combine(ts.date(), time.min, tzinfo=ts.tzinfo)


def end_of_day(ts: datetime) -> datetime:
    return datetime.combine(ts.date(), time.max, tzinfo=ts.tzinfo)


def start_of_week(ts: datetime, week_start: str = "monday") -> datetime:
    """Midnight of the first day of the week containing `ts`."""
    first = WEEKDAYS[week_start.lower()]
    offset = (ts.weekday() - first) % 7
    return start_of_day(ts - timedelta(days=offset))


def end_of_week(ts: datetime, week_start: str = "monday") -> datetime:
    return end_of_day(start_of_week(ts, week_start) + timedelta(days=6))


def today(now: datetime | None = None) -> Range:
    now = now or _now()
    return start_of_day(now), end_of_day(now)


def yesterday(now: datetime | None = None) -> Range:
    day = (now or _now()) - timedelta(days=1)
    return start_of_day(day), end_of_day(day)


def this_week(now: datetime | None = None, week_start: str = "monday") -> Range:
    now = now or _now()
    return start_of_week(now, week_start), end_of_week(now, week_start)


def last_week(now: datetime | None = None, week_start: str = "monday") -> Range:
    start = start_of_week(now or _now(), week_start) - timedelta(days=7)
    return start, end_of_week(start, week_start)


def this_month(now: datetime | None = None) -> Range:
    now = now or _now()
    start = start_of_day(now.replace(day=1))
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, end_of_day(next_month - timedelta(days=1))


def last_month(now: datetime | None = None) -> Range:
    first_of_this = (now or _now()).replace(day=1)
    return this_month(first_of_this - timedelta(days=1))


def last_days(days: int, now: datetime | None = None) -> Range:
    """The last `days` days including today."""
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    now = now or _now()
    return start_of_day(now - timedelta(days=days - 1)), end_of_day(now)


def is_in_range(ts: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive range check. Naive timestamps are read as local time."""
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return start <= ts <= end


# Named ranges accepted by `did list`
NAMED_RANGES: dict[str, tuple[str, Callable[[datetime, str], Range]]] = {
    "today": ("today", lambda now, ws: today(now)),
    "yesterday": ("yesterday", lambda now, ws: yesterday(now)),
    "y": ("yesterday", lambda now, ws: yesterday(now)),
    "week": ("this week", lambda now, ws: this_week(now, ws)),
    "w": ("this week", lambda now, ws: this_week(now, ws)),
    "lastweek": ("last week", lambda now, ws: last_week(now, ws)),
    "lw": ("last week", lambda now, ws: last_week(now, ws)),
    "month": ("this month", lambda now, ws: this_month(now)),
    "lastmonth": ("last month", lambda now, ws: last_month(now)),
}


def resolve_range(
    name: str, now: datetime | None = None, week_start: str = "monday"
) -> tuple[str, datetime, datetime]:
    """
    Resolve a named range.

    Returns:
        (human-readable period, start, end)

    Raises:
        ValueError: If the name is unknown
    """
    key = name.lower()
    if key not in NAMED_RANGES:
        valid = ", ".join(sorted(NAMED_RANGES))
        raise ValueError(f"Unknown period '{name}'. Valid periods: {valid}")
    period, fn = NAMED_RANGES[key]
    start, end = fn(now or _now(), week_start)
    return period, start, end


# Date input: ISO first, then day-first European
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")

_YEAR_ONLY = re.compile(r"^\d{4}$")
_ISO_MISSING_DAY = re.compile(r"^\d{4}-\d{1,2}$")
_MISSING_YEAR_DASH = re.compile(r"^\d{1,2}-\d{1,2}$")
_MISSING_YEAR_SLASH = re.compile(r"^\d{1,2}/\d{1,2}$")
_TOO_MANY_PARTS = re.compile(r"^\d+[-/]\d+[-/]\d+[-/]")

# Lower bound of an open-ended range (no --from given)
BEGINNING = datetime.min.replace(tzinfo=timezone.utc)
# Upper bound used for "all time"
END_OF_TIME = datetime.max.replace(tzinfo=timezone.utc)


def parse_date(text: str, tz: tzinfo | None = None) -> datetime:
    """
    Parse YYYY-MM-DD or DD/MM/YYYY into midnight of that day.

    Args:
        text: The date as typed
        tz: Timezone of the result; the system local zone when None

    Raises:
        ValueError: With a message naming what is missing or malformed
    """
    value = text.strip()
    if not value:
        raise ValueError(
            "date cannot be empty (use format YYYY-MM-DD or DD/MM/YYYY, e.g., 2024-01-15 or 15/01/2024)"
        )

    for fmt in DATE_FORMATS:
        try:
            day = datetime.strptime(value, fmt).date()
        except ValueError:
            continue
        start = datetime.combine(day, time.min, tzinfo=tz)
        return start if tz is not None else start.astimezone()

    raise ValueError(_date_error(value))


def _date_error(value: str) -> str:
    if _YEAR_ONLY.match(value):
        return f"incomplete date '{value}': missing month and day (use format YYYY-MM-DD, e.g., {value}-01-15)"
    if _ISO_MISSING_DAY.match(value):
        return f"incomplete date '{value}': missing day (use format YYYY-MM-DD, e.g., {value}-15)"
    if _MISSING_YEAR_DASH.match(value):
        return f"incomplete date '{value}': missing year (use format YYYY-MM-DD or DD/MM/YYYY, e.g., 2024-{value})"
    if _MISSING_YEAR_SLASH.match(value):
        return f"incomplete date '{value}': missing year (use format DD/MM/YYYY, e.g., {value}/2024)"
    if _TOO_MANY_PARTS.match(value):
        return f"invalid date '{value}': too many date parts (use format YYYY-MM-DD or DD/MM/YYYY)"
    return f"invalid date format '{value}' (use YYYY-MM-DD or DD/MM/YYYY, e.g., 2024-01-15 or 15/01/2024)"


def format_date_range(start: datetime, end: datetime) -> str:
    """'Mon, Jan 15, 2024', 'Jan 1 - Jan 31, 2024' or 'Dec 20, 2023 - Jan 5, 2024'."""
    if start.date() == end.date():
        return f"{start:%a}, {start:%b} {start.day}, {start.year}"
    if start.year == end.year:
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"
    return f"{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}"


def custom_range(
    start_text: str, end_text: str, tz: tzinfo | None = None
) -> tuple[str, datetime, datetime]:
    """
    Resolve 'from <start> to <end>', both days included.

    Raises:
        ValueError: If either date is invalid or start is after end
    """
    start = parse_date(start_text, tz)
    end = end_of_day(parse_date(end_text, tz))
    if start > end:
        raise ValueError(
            f"Start date ({start:%Y-%m-%d}) is after end date ({end:%Y-%m-%d})"
        )
    return format_date_range(start, end), start, end


def resolve_date_options(
    from_text: str | None = None,
    to_text: str | None = None,
    last: int | None = None,
    now: datetime | None = None,
) -> tuple[str, datetime, datetime] | None:
    """
    Resolve --from/--to/--last options into a labelled range.

    Without --from the range is open at the start; without --to it
    ends today. Dates are read in the timezone of `now`.

    Returns:
        (human-readable period, start, end), or None when no option is set

    Raises:
        ValueError: If --last is combined with --from/--to, a date is
            invalid, or --from is after --to
    """
    if last is not None and (from_text or to_text):
        raise ValueError("cannot use --last with --from or --to")

    now = now or _now()
    if last is not None:
        start, end = last_days(last, now)
        return f"last {last} {'day' if last == 1 else 'days'}", start, end

    if not from_text and not to_text:
        return None

    tz = now.tzinfo
    try:
        start = parse_date(from_text, tz) if from_text else BEGINNING
    except ValueError as e:
        raise ValueError(f"invalid --from date: {e}") from e
    try:
        end = end_of_day(parse_date(to_text, tz)) if to_text else end_of_day(now)
    except ValueError as e:
        raise ValueError(f"invalid --to date: {e}") from e

    if start > end:
        raise ValueError(
            f"--from date ({start:%Y-%m-%d}) is after --to date ({end:%Y-%m-%d})"
        )
    if start == BEGINNING:
        return f"until {end:%b} {end.day}, {end.year}", start, end
    return format_date_range(start, end), start, end
