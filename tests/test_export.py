"""Tests for JSON and CSV export."""

import csv
import io
import json
from datetime import datetime, timezone

import pytest

from did.export import CSV_HEADERS, export_csv, export_json, render_export

EXPORTED_AT = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


class TestExportJson:
    """Tests for export_json."""

    def test_metadata_and_entries(self, make_entry):
        entries = [make_entry(0, project="acme"), make_entry(1)]
        document = json.loads(export_json(entries, EXPORTED_AT, {"project": "acme"}))

        assert document["metadata"] == {
            "export_timestamp": "2024-02-01T12:00:00+00:00",
            "total_entries": 2,
            "filter_criteria": {"project": "acme"},
        }
        assert document["entries"] == [e.to_dict() for e in entries]

    def test_empty_export(self):
        document = json.loads(export_json([], EXPORTED_AT))
        assert document["metadata"]["total_entries"] == 0
        assert document["metadata"]["filter_criteria"] == {}
        assert document["entries"] == []

    def test_pretty_printed_utf8(self, make_entry):
        text = export_json([make_entry(description="café")], EXPORTED_AT)
        assert "\n  " in text
        assert "café" in text


class TestExportCsv:
    """Tests for export_csv."""

    def test_rows(self, make_entry):
        text = export_csv(
            [
                make_entry(0, duration_minutes=90, project="acme", tags=["bug", "urgent"]),
                make_entry(1, duration_minutes=20),
            ]
        )
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == CSV_HEADERS
        assert rows[1] == ["2024-01-15", "task 0", "90", "1.50", "acme", "bug;urgent"]
        assert rows[2] == ["2024-01-15", "task 1", "20", "0.33", "", ""]

    def test_quotes_commas(self, make_entry):
        text = export_csv([make_entry(description='fix "a", then b')])
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[1][1] == 'fix "a", then b'

    def test_header_only(self):
        assert export_csv([]) == ",".join(CSV_HEADERS) + "\n"


class TestRenderExport:
    """Tests for render_export."""

    def test_format_is_case_insensitive(self, make_entry):
        assert render_export(" CSV ", [make_entry()], EXPORTED_AT).startswith("date,")

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown export format 'xml'"):
            render_export("xml", [], EXPORTED_AT)
