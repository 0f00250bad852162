"""
catalog/extractor.py

Schema extraction for uploaded tabular files.

Turns raw bytes into a SchemaResult (row count, header columns, byte size)
without touching storage. CSV goes through the stdlib csv reader; xls/xlsx
workbooks are read with pandas (xlrd / openpyxl engines).
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator
from pathlib import PurePath
from typing import Any

import pandas as pd

from catalog.errors import (
    EmptyFileError,
    FieldTooLongError,
    NoColumnsError,
    ParseError,
    TooLargeError,
    UnsupportedFormatError,
)
from catalog.types import FilePreview, SchemaResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
MAX_FILENAME_LENGTH = 255

SUPPORTED_EXTENSIONS = frozenset({"csv", "xls", "xlsx"})

_EXCEL_ENGINES: dict[str, str] = {
    "xls": "xlrd",
    "xlsx": "openpyxl",
}

_EXTENSION_BY_CONTENT_TYPE: dict[str, str] = {
    "text/csv": "csv",
    "application/csv": "csv",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
}


def resolve_extension(filename: str, declared_type: str | None = None) -> str:
    """
    Return the lower-cased extension used to pick a parser.

    The filename wins; the declared type (an extension or MIME type) is only
    consulted when the filename carries no suffix.
    """

    suffix = PurePath(filename or "").suffix.lower().lstrip(".")
    if suffix:
        return suffix

    declared = (declared_type or "").strip().lower()
    if not declared:
        return ""
    if declared in _EXTENSION_BY_CONTENT_TYPE:
        return _EXTENSION_BY_CONTENT_TYPE[declared]
    return declared.lstrip(".")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SchemaExtractor:
    """
    Parses uploaded CSV / spreadsheet bytes into a validated schema result.
    """

    def __init__(self, *, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self._max_bytes = max(1, max_bytes)

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def extract(
        self,
        raw: bytes,
        declared_type: str | None,
        filename: str,
    ) -> SchemaResult:
        """
        Validate and summarize one uploaded file.

        Raises:
            TooLargeError, EmptyFileError, FieldTooLongError,
            UnsupportedFormatError, ParseError, NoColumnsError.
        """

        file_size = len(raw)
        if file_size > self._max_bytes:
            raise TooLargeError(file_size, self._max_bytes)
        if file_size == 0:
            raise EmptyFileError("File is empty. Please upload a non-empty file.")
        if len(filename) > MAX_FILENAME_LENGTH:
            raise FieldTooLongError("filename", len(filename), MAX_FILENAME_LENGTH)

        extension = resolve_extension(filename, declared_type)
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(extension, SUPPORTED_EXTENSIONS)

        rows = self._tabulate(raw, extension)
        columns = tuple(next(rows, ()))
        if not columns:
            raise NoColumnsError("File has no column headers.")

        row_count = sum(1 for _ in rows)
        logger.debug(
            "Extracted schema filename=%r format=%s columns=%d rows=%d bytes=%d",
            filename,
            extension,
            len(columns),
            row_count,
            file_size,
        )
        return SchemaResult(
            row_count=row_count,
            columns=columns,
            file_size=file_size,
            filename=filename,
            file_format=extension,
        )

    def preview(
        self,
        raw: bytes,
        filename: str,
        *,
        declared_type: str | None = None,
        limit: int = 10,
    ) -> FilePreview:
        """
        Return the header, up to ``limit`` data rows and the total row count.

        ``filename`` and ``declared_type`` pick the parser the same way
        extract() does.
        """

        extension = resolve_extension(filename, declared_type)
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(extension, SUPPORTED_EXTENSIONS)
        if not raw:
            raise EmptyFileError("Stored file is empty.")

        rows = self._tabulate(raw, extension)
        headers = tuple(next(rows, ()))
        sample: list[tuple[str, ...]] = []
        total = 0
        for row in rows:
            total += 1
            if len(sample) < max(0, limit):
                sample.append(tuple(row))
        return FilePreview(headers=headers, rows=tuple(sample), total_rows=total)

    # ------------------------------------------------------------------
    # Format readers
    # ------------------------------------------------------------------

    def _tabulate(self, raw: bytes, extension: str) -> Iterator[list[str]]:
        """
        Yield the header first, then every non-empty data row.
        """

        if extension == "csv":
            return self._iter_csv(raw)
        return self._iter_workbook(raw, extension)

    def _iter_csv(self, raw: bytes) -> Iterator[list[str]]:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            line = raw[: exc.start].count(b"\n") + 1
            raise ParseError("CSV must be UTF-8 encoded.", row_index=line) from exc

        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        header: list[str] | None = None
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                raise ParseError(
                    f"Invalid CSV format at line {reader.line_num}: {exc}",
                    row_index=reader.line_num,
                ) from exc

            # Rows of empty cells such as "," are data; only empty lines are not.
            if len(row) <= 1 and not "".join(row).strip():
                continue

            if header is None:
                header = row
                yield row
                continue

            if len(row) != len(header):
                raise ParseError(
                    f"Line {reader.line_num} has {len(row)} fields; "
                    f"the header has {len(header)}.",
                    row_index=reader.line_num,
                )
            yield row

    def _iter_workbook(self, raw: bytes, extension: str) -> Iterator[list[str]]:
        try:
            workbook = pd.ExcelFile(io.BytesIO(raw), engine=_EXCEL_ENGINES[extension])
        except Exception as exc:  # noqa: BLE001 - engines raise many unrelated types
            raise ParseError(
                "Error processing spreadsheet. The file may be corrupted or "
                "in an unsupported format."
            ) from exc

        with workbook:
            if not workbook.sheet_names:
                raise EmptyFileError("Spreadsheet has no sheets.")
            try:
                frame = workbook.parse(workbook.sheet_names[0], header=None, dtype=object)
            except Exception as exc:  # noqa: BLE001
                raise ParseError(
                    f"Unable to read sheet {workbook.sheet_names[0]!r}."
                ) from exc

        if frame.empty:
            raise EmptyFileError("The first sheet has no rows.")

        header: list[str] | None = None
        for line, record in enumerate(frame.itertuples(index=False, name=None), start=1):
            if all(_is_blank(value) for value in record):
                continue
            cells = [_cell_text(value) for value in record]

            if header is None:
                # Blank cells inside the header keep their position.
                while cells and not cells[-1]:
                    cells.pop()
                header = cells
                yield header
                continue

            if any(cells[len(header):]):
                raise ParseError(
                    f"Row {line} has values beyond the {len(header)} header columns.",
                    row_index=line,
                )
            yield cells[: len(header)]
