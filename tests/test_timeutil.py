"""Tests for date range helpers."""

from datetime import datetime, time, timedelta, timezone

import pytest

from did.timeutil import (
    BEGINNING,
    custom_range,
    end_of_day,
    format_date_range,
    is_in_range,
    last_days,
    last_month,
    last_week,
    parse_date,
    resolve_date_options,
    resolve_range,
    start_of_day,
    start_of_week,
    this_month,
    this_week,
    today,
    yesterday,
)

UTC = timezone.utc

# Wednesday
NOW = datetime(2024, 3, 13, 15, 30, tzinfo=UTC)


class TestDayBounds:
    """Tests for start_of_day and end_of_day."""

    def test_bounds_keep_timezone(self):
        tz = timezone(timedelta(hours=2))
        ts = datetime(2024, 3, 13, 15, 30, tzinfo=tz)
        assert start_of_day(ts) == datetime(2024, 3, 13, 0, 0, tzinfo=tz)
        assert end_of_day(ts) == datetime.combine(ts.date(), time.max, tzinfo=tz)

    def test_today_and_yesterday(self):
        assert today(NOW) == (
            datetime(2024, 3, 13, tzinfo=UTC),
            datetime.combine(NOW.date(), time.max, tzinfo=UTC),
        )
        start, end = yesterday(NOW)
        assert start == datetime(2024, 3, 12, tzinfo=UTC)
        assert end.date() == start.date()


class TestWeeks:
    """Tests for week ranges."""

    def test_monday_start(self):
        start, end = this_week(NOW, "monday")
        assert start == datetime(2024, 3, 11, tzinfo=UTC)
        assert end.date() == datetime(2024, 3, 17).date()

    def test_sunday_start(self):
        start, end = this_week(NOW, "sunday")
        assert start == datetime(2024, 3, 10, tzinfo=UTC)
        assert end.date() == datetime(2024, 3, 16).date()

    def test_on_week_start_day(self):
        monday = datetime(2024, 3, 11, 8, 0, tzinfo=UTC)
        assert start_of_week(monday, "monday") == datetime(2024, 3, 11, tzinfo=UTC)

    def test_last_week(self):
        start, end = last_week(NOW, "monday")
        assert start == datetime(2024, 3, 4, tzinfo=UTC)
        assert end.date() == datetime(2024, 3, 10).date()


class TestMonths:
    """Tests for month ranges."""

    def test_this_month(self):
        start, end = this_month(NOW)
        assert start == datetime(2024, 3, 1, tzinfo=UTC)
        assert end.date() == datetime(2024, 3, 31).date()

    def test_leap_february(self):
        _, end = this_month(datetime(2024, 2, 10, tzinfo=UTC))
        assert end.day == 29

    def test_last_month_across_year(self):
        start, end = last_month(datetime(2024, 1, 31, tzinfo=UTC))
        assert start == datetime(2023, 12, 1, tzinfo=UTC)
        assert end.date() == datetime(2023, 12, 31).date()


class TestLastDays:
    """Tests for last_days."""

    def test_includes_today(self):
        start, end = last_days(3, NOW)
        assert start == datetime(2024, 3, 11, tzinfo=UTC)
        assert end.date() == NOW.date()

    def test_one_day_is_today(self):
        assert last_days(1, NOW) == today(NOW)

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            last_days(0, NOW)


class TestRanges:
    """Tests for is_in_range and resolve_range."""

    def test_inclusive_bounds(self):
        start, end = today(NOW)
        assert is_in_range(start, start, end)
        assert is_in_range(end, start, end)
        assert not is_in_range(end + timedelta(microseconds=1), start, end)

    def test_other_timezone_compared_by_instant(self):
        start, end = today(NOW)
        # 01:00 on the 14th at +02:00 is 23:00 UTC on the 13th
        ts = datetime(2024, 3, 14, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        assert is_in_range(ts, start, end)

    @pytest.mark.parametrize(
        "name,label",
        [
            ("today", "today"),
            ("y", "yesterday"),
            ("W", "this week"),
            ("lw", "last week"),
            ("month", "this month"),
            ("lastmonth", "last month"),
        ],
    )
    def test_resolve_named(self, name, label):
        resolved_label, start, end = resolve_range(name, NOW)
        assert resolved_label == label
        assert start <= end

    def test_resolve_uses_week_start(self):
        _, start, _ = resolve_range("week", NOW, "sunday")
        assert start.weekday() == 6

    def test_resolve_unknown(self):
        with pytest.raises(ValueError, match="Unknown period 'fortnight'"):
            resolve_range("fortnight", NOW)


class TestParseDate:
    """Tests for parse_date."""

    @pytest.mark.parametrize("text", ["2024-01-15", "15/01/2024", " 2024-01-15 "])
    def test_formats(self, text):
        assert parse_date(text, UTC) == datetime(2024, 1, 15, tzinfo=UTC)

    def test_uses_given_timezone(self):
        tz = timezone(timedelta(hours=-5))
        assert parse_date("2024-01-15", tz).utcoffset() == timedelta(hours=-5)

    def test_local_zone_by_default(self):
        assert parse_date("2024-01-15").tzinfo is not None

    @pytest.mark.parametrize(
        "text, message",
        [
            ("", "date cannot be empty"),
            ("2024", "missing month and day"),
            ("2024-01", "missing day"),
            ("01-15", "missing year"),
            ("15/01", "missing year"),
            ("2024-01-15-01", "too many date parts"),
            ("2024-02-30", "invalid date format"),
            ("tomorrow", "invalid date format"),
        ],
    )
    def test_errors(self, text, message):
        with pytest.raises(ValueError, match=message):
            parse_date(text, UTC)


class TestCustomRange:
    """Tests for custom_range and format_date_range."""

    def test_both_days_included(self):
        label, start, end = custom_range("2024-01-01", "31/01/2024", UTC)
        assert start == datetime(2024, 1, 1, tzinfo=UTC)
        assert end == datetime.combine(datetime(2024, 1, 31).date(), time.max, tzinfo=UTC)
        assert label == "Jan 1 - Jan 31, 2024"

    def test_single_day(self):
        label, start, end = custom_range("2024-01-15", "2024-01-15", UTC)
        assert label == "Mon, Jan 15, 2024"
        assert start.date() == end.date()

    def test_start_after_end(self):
        with pytest.raises(ValueError, match=r"Start date \(2024-02-01\) is after end date \(2024-01-01\)"):
            custom_range("2024-02-01", "2024-01-01", UTC)

    def test_label_across_years(self):
        start = datetime(2023, 12, 20, tzinfo=UTC)
        end = datetime(2024, 1, 5, tzinfo=UTC)
        assert format_date_range(start, end) == "Dec 20, 2023 - Jan 5, 2024"


class TestResolveDateOptions:
    """Tests for --from/--to/--last resolution."""

    def test_no_options(self):
        assert resolve_date_options(now=NOW) is None

    def test_last(self):
        label, start, end = resolve_date_options(last=7, now=NOW)
        assert label == "last 7 days"
        assert start == datetime(2024, 3, 7, tzinfo=UTC)
        assert end == end_of_day(NOW)
        assert resolve_date_options(last=1, now=NOW)[0] == "last 1 day"

    def test_from_only_ends_today(self):
        label, start, end = resolve_date_options(from_text="2024-03-01", now=NOW)
        assert start == datetime(2024, 3, 1, tzinfo=UTC)
        assert end == end_of_day(NOW)
        assert label == "Mar 1 - Mar 13, 2024"

    def test_to_only_is_open_at_start(self):
        label, start, end = resolve_date_options(to_text="2024-03-10", now=NOW)
        assert start == BEGINNING
        assert end.date() == datetime(2024, 3, 10).date()
        assert label == "until Mar 10, 2024"

    def test_last_with_dates(self):
        with pytest.raises(ValueError, match="cannot use --last with --from or --to"):
            resolve_date_options(to_text="2024-03-10", last=3, now=NOW)

    def test_invalid_dates_name_the_option(self):
        with pytest.raises(ValueError, match="invalid --from date: incomplete date"):
            resolve_date_options(from_text="2024-03", now=NOW)
        with pytest.raises(ValueError, match="invalid --to date"):
            resolve_date_options(to_text="soon", now=NOW)

    def test_from_after_to(self):
        with pytest.raises(ValueError, match=r"--from date \(2024-03-10\) is after --to date \(2024-03-01\)"):
            resolve_date_options(from_text="2024-03-10", to_text="2024-03-01", now=NOW)
