"""
Builders and test doubles shared across catalog tests.
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import openpyxl

from app.services.publishing_service import UploadedFile
from catalog.errors import StorageUnavailableError
from db.repositories.storage import LocalFileStorage

SALES_ROWS = [
    ["region", "product", "revenue"],
    ["north", "widget", 120],
    ["south", "gadget", 80],
    ["east", "widget", 95],
]


def make_csv(rows: Sequence[Sequence[Any]]) -> bytes:
    return "\n".join(",".join(str(cell) for cell in row) for row in rows).encode("utf-8") + b"\n"


def make_xlsx(rows: Sequence[Sequence[Any]]) -> bytes:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def csv_upload(rows: Sequence[Sequence[Any]], filename: str = "sales.csv") -> UploadedFile:
    return UploadedFile(filename=filename, content=make_csv(rows), content_type="text/csv")


def stored_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return sorted(path for path in root.rglob("*") if path.is_file())


class FlakyFileStore:
    """
    Wraps a real file store and fails the first ``put_failures`` puts.
    """

    def __init__(self, inner: LocalFileStorage, *, put_failures: int = 0) -> None:
        self.inner = inner
        self.put_failures = put_failures
        self.put_attempts = 0

    def put(self, content: bytes, key: str) -> str:
        self.put_attempts += 1
        if self.put_attempts <= self.put_failures:
            raise StorageUnavailableError("storage timed out")
        return self.inner.put(content, key)

    def get(self, path: str) -> bytes:
        return self.inner.get(path)

    def delete(self, path: str) -> None:
        self.inner.delete(path)
