"""
Unit tests for spreadsheet parsing.

Run: pytest tests/unit/test_spreadsheet_parser.py -v
"""

import pytest
from io import BytesIO

import pandas as pd

from exceptions import SpreadsheetParseError, UnsupportedFileTypeError
from parsers.spreadsheet_parser import (
    CSV_CONTENT_TYPE,
    XLSX_CONTENT_TYPE,
    parse_spreadsheet,
    resolve_content_type,
)
from services.import_preview_service import build_preview


class TestResolveContentType:
    """Tests for resolve_content_type()"""

    def test_declared_csv(self):
        assert resolve_content_type("text/csv", "x.bin") == CSV_CONTENT_TYPE

    def test_declared_type_with_parameters(self):
        assert resolve_content_type("text/csv; charset=utf-8", None) == CSV_CONTENT_TYPE

    def test_octet_stream_falls_back_to_extension(self):
        assert resolve_content_type("application/octet-stream", "Animals.XLSX") == XLSX_CONTENT_TYPE

    def test_unsupported_type_raises(self):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            resolve_content_type("application/pdf", "animals.csv")

        assert exc_info.value.status_code == 400
        assert "Unsupported file type" in exc_info.value.message


class TestParseCsv:
    """Tests for parse_spreadsheet() with CSV input"""

    def test_reads_headers_and_rows(self):
        # Arrange
        content = b"Name,Sex,Weight\nRex,male,120\nNova,,\n"

        # Act
        headers, rows = parse_spreadsheet(content, CSV_CONTENT_TYPE)

        # Assert
        assert headers == ["Name", "Sex", "Weight"]
        assert rows == [
            {"Name": "Rex", "Sex": "male", "Weight": "120"},
            {"Name": "Nova", "Sex": None, "Weight": None},
        ]

    def test_skips_fully_blank_lines(self):
        content = b"Name,Sex\nRex,male\n,\nNova,female\n"

        _, rows = parse_spreadsheet(content, CSV_CONTENT_TYPE)

        assert [r["Name"] for r in rows] == ["Rex", "Nova"]

    def test_strips_byte_order_mark(self):
        content = "\ufeffName\nRex\n".encode("utf-8")

        headers, _ = parse_spreadsheet(content, CSV_CONTENT_TYPE)

        assert headers == ["Name"]

    def test_empty_file_returns_no_rows(self):
        headers, rows = parse_spreadsheet(b"", CSV_CONTENT_TYPE)

        assert headers == []
        assert rows == []

    def test_unreadable_bytes_raise(self):
        with pytest.raises(SpreadsheetParseError):
            parse_spreadsheet(b"\xff\xfe\x00garbage", XLSX_CONTENT_TYPE)


class TestParseXlsx:
    """Tests for parse_spreadsheet() with XLSX input"""

    def test_reads_first_sheet(self):
        # Arrange
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame({
                "Name": ["Rex", "Nova"],
                "Weight": [120, None],
                "Acquisition Date": [pd.Timestamp("2024-08-15"), pd.Timestamp("2024-09-01")],
            }).to_excel(writer, sheet_name="Animals", index=False)
            pd.DataFrame({"Ignored": [1]}).to_excel(writer, sheet_name="Other", index=False)

        # Act
        headers, rows = parse_spreadsheet(buffer.getvalue(), XLSX_CONTENT_TYPE)

        # Assert
        assert headers == ["Name", "Weight", "Acquisition Date"]
        assert rows[0] == {"Name": "Rex", "Weight": 120.0, "Acquisition Date": "2024-08-15"}
        assert rows[1]["Weight"] is None

    def test_integer_column_with_blanks_keeps_integers(self):
        # Arrange: pandas reads this column as float because of the blank
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame({
                "Name": ["Rex", "Nova"],
                "Sex": ["male", "female"],
                "Species": ["Ball Python", "Ball Python"],
                "Acquisition Date": ["2024-08-15", "2024-09-01"],
                "Is Breeder": [1, None],
                "Weight": [350.5, None],
            }).to_excel(writer, index=False)

        # Act
        headers, rows = parse_spreadsheet(buffer.getvalue(), XLSX_CONTENT_TYPE)
        report = build_preview(rows, headers=headers)

        # Assert
        assert rows[0]["Is Breeder"] == 1
        assert isinstance(rows[0]["Is Breeder"], int)
        assert rows[0]["Weight"] == 350.5
        assert rows[1]["Is Breeder"] is None
        assert report.invalid_rows == {}
        assert report.valid_rows == [0, 1]
