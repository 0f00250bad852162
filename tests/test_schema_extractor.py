"""
tests/test_schema_extractor.py

Pytest unit tests for SchemaExtractor.

Pure bytes in, SchemaResult or a validation error out. Spreadsheets are
built in memory with openpyxl.
"""

from __future__ import annotations

import pytest

from catalog.errors import (
    EmptyFileError,
    FieldTooLongError,
    NoColumnsError,
    ParseError,
    TooLargeError,
    UnsupportedFormatError,
)
from catalog.extractor import SchemaExtractor, resolve_extension
from tests.helpers import make_csv, make_xlsx


@pytest.fixture()
def extractor() -> SchemaExtractor:
    return SchemaExtractor(max_bytes=1024 * 1024)


# ---------------------------------------------------------------------------
# Format resolution
# ---------------------------------------------------------------------------


class TestResolveExtension:
    @pytest.mark.parametrize(
        ("filename", "declared", "expected"),
        [
            ("sales.csv", None, "csv"),
            ("SALES.XLSX", None, "xlsx"),
            ("report.xls", "text/csv", "xls"),
            ("upload", "text/csv", "csv"),
            ("upload", "xlsx", "xlsx"),
            ("upload", None, ""),
        ],
    )
    def test_filename_wins_over_declared_type(self, filename, declared, expected) -> None:
        assert resolve_extension(filename, declared) == expected


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


class TestCSV:
    def test_counts_rows_and_columns(self, extractor: SchemaExtractor) -> None:
        raw = make_csv([["name", "age"], ["alice", 30], ["bob", 25]])
        result = extractor.extract(raw, "text/csv", "people.csv")

        assert result.columns == ("name", "age")
        assert result.row_count == 2
        assert result.file_size == len(raw)
        assert result.filename == "people.csv"

    def test_header_only_file_has_zero_rows(self, extractor: SchemaExtractor) -> None:
        result = extractor.extract(b"name,age\n", None, "people.csv")
        assert result.columns == ("name", "age")
        assert result.row_count == 0

    def test_utf8_bom_is_tolerated(self, extractor: SchemaExtractor) -> None:
        result = extractor.extract(b"\xef\xbb\xbfname,age\nalice,30\n", None, "people.csv")
        assert result.columns[0] == "name"

    def test_blank_lines_are_skipped(self, extractor: SchemaExtractor) -> None:
        raw = b"\nname,age\n\nalice,30\n   \nbob,25\n\n"
        result = extractor.extract(raw, None, "people.csv")
        assert result.columns == ("name", "age")
        assert result.row_count == 2

    def test_rows_of_empty_cells_are_counted(self, extractor: SchemaExtractor) -> None:
        result = extractor.extract(b"Name,Age\n,\nbob,3\n", None, "people.csv")
        assert result.row_count == 2

    def test_result_records_parsed_format(self, extractor: SchemaExtractor) -> None:
        assert extractor.extract(b"a,b\n1,2\n", "text/csv", "upload").file_format == "csv"

    def test_duplicate_headers_are_kept_verbatim(self, extractor: SchemaExtractor) -> None:
        result = extractor.extract(b"a,a, b \n1,2,3\n", None, "dup.csv")
        assert result.columns == ("a", "a", " b ")

    def test_arabic_headers_survive(self, extractor: SchemaExtractor) -> None:
        raw = "المدينة,السكان\nالرياض,7000000\n".encode("utf-8")
        result = extractor.extract(raw, None, "cities.csv")
        assert result.columns == ("المدينة", "السكان")

    def test_field_count_mismatch_reports_line(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(ParseError) as exc_info:
            extractor.extract(b"a,b\n1,2\n1,2,3\n", None, "bad.csv")
        assert exc_info.value.row_index == 3

    def test_unterminated_quote_is_a_parse_error(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(ParseError):
            extractor.extract(b'a,b\n"unclosed,1\n', None, "bad.csv")

    def test_undecodable_bytes_report_line(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(ParseError) as exc_info:
            extractor.extract(b"a,b\n\xff\xfe,1\n", None, "latin.csv")
        assert exc_info.value.row_index == 2

    def test_only_blank_lines_has_no_columns(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(NoColumnsError):
            extractor.extract(b"\n  \n\n", None, "blank.csv")


# ---------------------------------------------------------------------------
# Spreadsheets
# ---------------------------------------------------------------------------


class TestSpreadsheet:
    def test_xlsx_first_sheet(self, extractor: SchemaExtractor) -> None:
        raw = make_xlsx(
            [
                ["name", "score"],
                ["a", 1],
                [None, None],
                ["b", 2],
            ]
        )
        result = extractor.extract(raw, None, "scores.xlsx")

        assert result.columns == ("name", "score")
        assert result.row_count == 2
        assert result.file_size == len(raw)

    def test_empty_workbook_is_empty_file(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(EmptyFileError):
            extractor.extract(make_xlsx([]), None, "empty.xlsx")

    def test_blank_header_cell_keeps_columns_aligned(self, extractor: SchemaExtractor) -> None:
        raw = make_xlsx([["Name", None, "Age"], ["a", "x", 1]])

        result = extractor.extract(raw, None, "people.xlsx")
        preview = extractor.preview(raw, "people.xlsx")

        assert result.columns == ("Name", "", "Age")
        assert preview.headers == ("Name", "", "Age")
        assert preview.rows == (("a", "x", "1"),)

    def test_trailing_blank_header_cells_are_dropped(self, extractor: SchemaExtractor) -> None:
        raw = make_xlsx([["Name", "Age", None], ["a", 1, None]])

        preview = extractor.preview(raw, "people.xlsx")

        assert preview.headers == ("Name", "Age")
        assert preview.rows == (("a", "1"),)

    def test_values_beyond_header_are_a_parse_error(self, extractor: SchemaExtractor) -> None:
        raw = make_xlsx([["Name", "Age"], ["a", 1], ["b", 2, "extra"]])

        with pytest.raises(ParseError) as exc_info:
            extractor.extract(raw, None, "people.xlsx")
        assert exc_info.value.row_index == 3

    @pytest.mark.parametrize("filename", ["broken.xlsx", "broken.xls"])
    def test_unreadable_workbook_is_parse_error(self, extractor: SchemaExtractor, filename) -> None:
        with pytest.raises(ParseError):
            extractor.extract(b"definitely not a workbook", None, filename)


# ---------------------------------------------------------------------------
# Input validation order
# ---------------------------------------------------------------------------


class TestValidation:
    def test_empty_file(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(EmptyFileError):
            extractor.extract(b"", "text/csv", "empty.csv")

    def test_too_large_reports_limit(self) -> None:
        extractor = SchemaExtractor(max_bytes=10)
        with pytest.raises(TooLargeError) as exc_info:
            extractor.extract(b"a,b\n" * 5, None, "big.csv")
        assert exc_info.value.details["limit_bytes"] == 10
        assert exc_info.value.details["file_size"] == 20

    def test_size_is_checked_before_format(self) -> None:
        extractor = SchemaExtractor(max_bytes=10)
        with pytest.raises(TooLargeError):
            extractor.extract(b"x" * 11, None, "notes.txt")

    def test_emptiness_is_checked_before_format(self, extractor: SchemaExtractor) -> None:
        with pytest.raises(EmptyFileError):
            extractor.extract(b"", None, "notes.txt")

    @pytest.mark.parametrize("filename", ["notes.txt", "data.json", "noextension"])
    def test_unsupported_format(self, extractor: SchemaExtractor, filename) -> None:
        with pytest.raises(UnsupportedFormatError):
            extractor.extract(b"a,b\n1,2\n", None, filename)

    def test_declared_type_used_without_suffix(self, extractor: SchemaExtractor) -> None:
        result = extractor.extract(b"a,b\n1,2\n", "text/csv", "upload")
        assert result.columns == ("a", "b")

    def test_long_filename_is_rejected(self, extractor: SchemaExtractor) -> None:
        filename = "x" * 252 + ".csv"

        with pytest.raises(FieldTooLongError) as exc_info:
            extractor.extract(b"a,b\n1,2\n", None, filename)
        assert exc_info.value.details["field"] == "filename"
        assert exc_info.value.details["max_length"] == 255


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


class TestPreview:
    def test_limits_rows_and_counts_total(self, extractor: SchemaExtractor) -> None:
        rows = [["id", "value"]] + [[i, i * 10] for i in range(1, 26)]
        preview = extractor.preview(make_csv(rows), "numbers.csv", limit=5)

        assert preview.headers == ("id", "value")
        assert preview.rows == tuple((str(i), str(i * 10)) for i in range(1, 6))
        assert preview.total_rows == 25

    def test_xlsx_cells_render_as_text(self, extractor: SchemaExtractor) -> None:
        raw = make_xlsx([["city", "population"], ["Riyadh", 7000000]])
        preview = extractor.preview(raw, "cities.xlsx", limit=10)

        assert preview.headers == ("city", "population")
        assert preview.rows == (("Riyadh", "7000000"),)

    def test_parser_follows_declared_type(self, extractor: SchemaExtractor) -> None:
        preview = extractor.preview(b"a,b\n1,2\n", "upload", declared_type="text/csv")

        assert preview.headers == ("a", "b")
        assert preview.rows == (("1", "2"),)
