"""Tests for the entry record codec."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from did.entry import Entry, decode_entry, encode_entry
from did.exceptions import EntryDecodeError

UTC = timezone.utc

DEEPLY_NESTED = "[" * 100000 + "]" * 100000
HUGE_DURATION = (
    '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":'
    + "9" * 5000
    + "}"
)


class TestEncode:
    """Tests for encoding entries to lines."""

    def test_minimal_entry_omits_empty_optional_fields(self, make_entry):
        """project, tags and deleted_at are left out when empty."""
        data = json.loads(encode_entry(make_entry()))
        assert set(data) == {"timestamp", "description", "duration_minutes", "raw_input"}

    def test_field_order_and_compact_format(self, make_entry):
        """Fields appear in fixed order without extra whitespace."""
        line = encode_entry(make_entry(project="acme", tags=["bug"]))
        assert line.startswith('{"timestamp":"2024-01-15T09:00:00+00:00","description":"task 0"')
        assert ", " not in line
        assert list(json.loads(line)) == [
            "timestamp",
            "description",
            "duration_minutes",
            "raw_input",
            "project",
            "tags",
        ]

    def test_embedded_newline_is_escaped(self, make_entry):
        """A description with a newline still encodes to a single line."""
        line = encode_entry(make_entry(description="first\nsecond"))
        assert "\n" not in line
        assert decode_entry(line).description == "first\nsecond"

    def test_non_ascii_written_as_utf8(self, make_entry):
        """Non-ASCII text is kept as-is rather than \\u-escaped."""
        line = encode_entry(make_entry(description="café ☕"))
        assert "café ☕" in line


class TestDecode:
    """Tests for decoding lines to entries."""

    def test_round_trip_minimal(self, make_entry):
        """Entry with empty project, no tags and no deleted_at survives a round trip."""
        entry = make_entry()
        assert decode_entry(encode_entry(entry)) == entry

    def test_round_trip_all_fields(self, make_entry):
        """Entry with every field populated survives a round trip."""
        entry = make_entry(
            project="acme",
            tags=["Bug", "urgent"],
            deleted_at=datetime(2024, 1, 16, 8, 30, 15, 123456, tzinfo=UTC),
        )
        decoded = decode_entry(encode_entry(entry))
        assert decoded == entry
        assert decoded.tags == ["Bug", "urgent"]

    def test_missing_optional_fields_default(self):
        """Files written before project/tags existed still decode."""
        line = '{"timestamp":"2024-01-15T09:00:00Z","description":"old","duration_minutes":60,"raw_input":"old for 1h"}'
        entry = decode_entry(line)
        assert entry.project == ""
        assert entry.tags == []
        assert entry.deleted_at is None
        assert entry.timestamp == datetime(2024, 1, 15, 9, 0, tzinfo=UTC)

    def test_missing_raw_input_defaults_to_empty(self):
        line = '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5}'
        assert decode_entry(line).raw_input == ""

    def test_null_optional_fields_default(self):
        line = (
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,'
            '"project":null,"tags":null,"deleted_at":null}'
        )
        entry = decode_entry(line)
        assert entry.project == ""
        assert entry.tags == []
        assert entry.deleted_at is None

    def test_unknown_fields_ignored(self):
        line = '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"mood":"great"}'
        assert decode_entry(line).description == "x"

    def test_nanosecond_timestamp(self):
        """Timestamps with more than six fractional digits decode."""
        line = '{"timestamp":"2024-01-15T09:00:00.123456789-05:00","description":"x","duration_minutes":5}'
        entry = decode_entry(line)
        assert entry.timestamp.utcoffset() == timedelta(hours=-5)
        assert entry.timestamp.microsecond == 123456

    def test_out_of_range_duration_round_trips(self, make_entry):
        """The codec keeps durations outside 1..1440 from hand-edited files."""
        entry = make_entry(duration_minutes=5000)
        assert decode_entry(encode_entry(entry)).duration_minutes == 5000
        assert decode_entry(encode_entry(make_entry(duration_minutes=-3))).duration_minutes == -3

    def test_is_deleted(self, make_entry):
        assert not make_entry().is_deleted
        assert make_entry(deleted_at=datetime(2024, 1, 16, tzinfo=UTC)).is_deleted


class TestDecodeErrors:
    """Decoding fails cleanly with EntryDecodeError."""

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "   ",
            "not json at all",
            '{"timestamp":"2024-01-15T09:00:00Z","description":"trunc',
            "[1, 2, 3]",
            "42",
            '{"description":"x","duration_minutes":5}',
            '{"timestamp":"yesterday","description":"x","duration_minutes":5}',
            '{"timestamp":"2024-01-15T09:00:00Z","duration_minutes":5}',
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x"}',
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":"5"}',
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":true}',
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"tags":"a"}',
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"tags":[1]}',
            '{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"deleted_at":7}',
            DEEPLY_NESTED,
            HUGE_DURATION,
            r'{"timestamp":"2024-01-15T09:00:00Z","description":"\ud800","duration_minutes":5}',
            r'{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"raw_input":"\udfff"}',
            r'{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"project":"\ud800"}',
            r'{"timestamp":"2024-01-15T09:00:00Z","description":"x","duration_minutes":5,"tags":["ok","\ud800"]}',
        ],
    )
    def test_invalid_lines_raise(self, line):
        with pytest.raises(EntryDecodeError):
            decode_entry(line)

    def test_lone_surrogate_names_field(self):
        """A string that cannot be written back as UTF-8 is rejected by field name."""
        with pytest.raises(EntryDecodeError, match="'description' is not valid UTF-8"):
            decode_entry(r'{"timestamp":"2024-01-15T09:00:00Z","description":"\ud800","duration_minutes":5}')

    def test_surrogate_pair_escape_is_accepted(self):
        """A properly paired escape decodes to one astral character."""
        entry = decode_entry(
            r'{"timestamp":"2024-01-15T09:00:00Z","description":"\ud83d\ude00","duration_minutes":5}'
        )
        assert entry.description == "\U0001F600"

    def test_deep_nesting_message(self):
        with pytest.raises(EntryDecodeError, match="nested too deeply"):
            decode_entry(DEEPLY_NESTED)

    def test_error_message_describes_problem(self):
        with pytest.raises(EntryDecodeError) as exc_info:
            decode_entry('{"timestamp":"2024-01-15T09:00:00Z","description":"x"}')
        assert "duration_minutes" in str(exc_info.value)

    def test_empty_line_message(self):
        with pytest.raises(EntryDecodeError, match="empty line"):
            Entry.from_json("")
