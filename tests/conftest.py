"""
Shared fixtures for catalog tests.

Everything runs in-process: the in-memory catalog store stands in for
PostgreSQL and LocalFileStorage writes under pytest's tmp_path.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from app.services.publishing_service import DatasetPublishingService
from catalog.extractor import SchemaExtractor
from catalog.store import InMemoryCatalogStore
from db.repositories.storage import LocalFileStorage


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def file_store(storage_root: Path) -> LocalFileStorage:
    return LocalFileStorage(storage_root)


@pytest.fixture()
def catalog_store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture()
def service(
    catalog_store: InMemoryCatalogStore,
    file_store: LocalFileStorage,
) -> DatasetPublishingService:
    return DatasetPublishingService(
        store=catalog_store,
        file_store=file_store,
        extractor=SchemaExtractor(max_bytes=1024 * 1024),
        max_retries=1,
        retry_backoff_seconds=0.0,
        preview_default_rows=10,
        preview_max_rows=20,
    )
