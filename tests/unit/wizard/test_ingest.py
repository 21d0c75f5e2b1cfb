"""Tests for CSV ingestion and the Employee ID index."""

from __future__ import annotations

import pytest

from waypoint.core.exceptions import CSVParseError
from waypoint.models.mapping import ColumnMap
from waypoint.wizard.ingest import build_employee_index, employee_id_column, parse_csv


class TestParseCsv:
    def test_headers_and_rows(self):
        table = parse_csv(b"Employee ID,Pay\nE1,100\nE2,200\n")
        assert table.headers == ("Employee ID", "Pay")
        assert table.rows == ({"Employee ID": "E1", "Pay": "100"}, {"Employee ID": "E2", "Pay": "200"})
        assert table.row_count == 2

    def test_strips_bom_and_header_whitespace(self):
        table = parse_csv("\ufeff ID , Pay\n1,2\n".encode("utf-8"))
        assert table.headers == ("ID", "Pay")

    def test_accepts_text(self):
        assert parse_csv("a\n1\n").rows == ({"a": "1"},)

    def test_quoted_commas(self):
        table = parse_csv(b'Name,Pay\n"Smith, Jo","$1,000"\n')
        assert table.rows[0] == {"Name": "Smith, Jo", "Pay": "$1,000"}

    def test_short_rows_padded_long_rows_truncated(self):
        table = parse_csv(b"a,b,c\n1\n1,2,3,4\n")
        assert table.rows == ({"a": "1", "b": "", "c": ""}, {"a": "1", "b": "2", "c": "3"})

    def test_blank_lines_skipped(self):
        table = parse_csv(b"a,b\n\n1,2\n,\n3,4\n")
        assert table.row_count == 2

    @pytest.mark.parametrize("content", [b"", b"\n\n", b" , \n"])
    def test_empty_file_raises(self, content):
        with pytest.raises(CSVParseError, match="empty or has no header"):
            parse_csv(content)

    def test_header_only_raises(self):
        with pytest.raises(CSVParseError, match="no data rows"):
            parse_csv(b"a,b\n")

    def test_invalid_utf8_raises(self):
        with pytest.raises(CSVParseError):
            parse_csv(b"a\n\xff\xfe\n")


class TestEmployeeIndex:
    def test_detects_id_column_by_header(self):
        assert employee_id_column(["Name", "employee_id"]) == "employee_id"

    def test_prefers_mapped_column(self):
        column_map = ColumnMap(fields={"Employee ID": "Badge"})
        assert employee_id_column(["Badge", "EmployeeID"], column_map) == "Badge"

    def test_no_id_column(self):
        table = parse_csv(b"Name\nJo\n")
        assert build_employee_index(table) == {}

    def test_keys_are_trimmed_lower_case(self):
        table = parse_csv(b"Employee ID,Pay\n E1 ,100\n,5\n")
        index = build_employee_index(table)
        assert list(index) == ["e1"]
        assert index["e1"]["Pay"] == "100"
