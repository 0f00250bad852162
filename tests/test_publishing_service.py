"""
tests/test_publishing_service.py

Pytest tests for DatasetPublishingService against the in-memory catalog
store and a LocalFileStorage rooted in tmp_path.

Coverage
--------
- Create / append with schema enforcement (scenarios A-C)
- Dense numbering under concurrent appends
- Storage retry-once and failure surfacing
- Compensating delete when persistence fails; no partial state
- Review flow through the service (scenarios D-F)
- Delete only while every version is a draft
- Preview and metadata suggestions
"""

from __future__ import annotations

import threading
import uuid
from pathlib import Path

import pytest

from app.services.publishing_service import (
    DatasetPublishingService,
    UploadedFile,
    build_storage_key,
)
from catalog.errors import (
    CatalogPersistenceError,
    CommentsRequiredError,
    DatasetLockedError,
    FieldTooLongError,
    IncompleteMetadataError,
    InvalidTransitionError,
    MetadataIncompleteError,
    NotFoundError,
    SchemaMismatchError,
    StorageUnavailableError,
    UnsupportedFormatError,
    VersionConflictError,
)
from catalog.store import InMemoryCatalogStore
from catalog.types import MetadataLanguage, SchemaResult, VersionStatus
from db.repositories.storage import LocalFileStorage
from tests.helpers import SALES_ROWS, FlakyFileStore, csv_upload, make_csv, stored_files

COMPLETE_EN = {"title": "Regional sales", "description": "Sales by region and product"}


class FailingCatalogStore(InMemoryCatalogStore):
    """In-memory store whose writes can be made to fail on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_add_version = False
        self.fail_update_status = False

    def add_version(self, catalog, result) -> None:
        if self.fail_add_version:
            raise CatalogPersistenceError("database went away")
        super().add_version(catalog, result)

    def update_status(self, version, *, expected) -> None:
        if self.fail_update_status:
            raise CatalogPersistenceError("database went away")
        super().update_status(version, expected=expected)


def _service(store, file_store, **kwargs) -> DatasetPublishingService:
    return DatasetPublishingService(store=store, file_store=file_store, **kwargs)


# ---------------------------------------------------------------------------
# Create / append
# ---------------------------------------------------------------------------


class TestCreateAndAppend:
    def test_create_stores_file_and_version_one(
        self, service: DatasetPublishingService, file_store: LocalFileStorage
    ) -> None:
        catalog = service.create_dataset(csv_upload(SALES_ROWS))
        version = catalog.latest()

        assert catalog.dataset.columns == ("region", "product", "revenue")
        assert catalog.dataset.row_count == 3
        assert version.version_number == 1
        assert version.status is VersionStatus.DRAFT
        assert file_store.get(version.file_path).startswith(b"region,product,revenue")

    def test_reordered_columns_append_version_two(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        reordered = [["revenue", "region", "product"], [10, "west", "widget"]]

        version = service.append_version(dataset_id, csv_upload(reordered), comments="  fix  ")

        assert version.version_number == 2
        assert version.comments == "fix"
        dataset = service.get_dataset(dataset_id).dataset
        assert dataset.row_count == 1
        assert dataset.columns == ("region", "product", "revenue")

    def test_appended_version_comments_default_to_its_number(
        self, service: DatasetPublishingService
    ) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id

        assert service.append_version(dataset_id, csv_upload(SALES_ROWS)).comments == "Version 2"
        assert service.append_version(dataset_id, csv_upload(SALES_ROWS), comments="  ").comments == "Version 3"
        assert service.get_dataset(dataset_id).find(1).comments is None

    def test_mismatched_columns_leave_no_trace(
        self, service: DatasetPublishingService, storage_root: Path
    ) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        files_before = stored_files(storage_root)

        with pytest.raises(SchemaMismatchError) as exc_info:
            service.append_version(dataset_id, csv_upload([["region", "product"], ["n", "w"]]))

        assert exc_info.value.missing == ("revenue",)
        assert len(service.list_versions(dataset_id)) == 1
        assert stored_files(storage_root) == files_before

    def test_invalid_upload_stores_nothing(
        self, service: DatasetPublishingService, storage_root: Path
    ) -> None:
        with pytest.raises(UnsupportedFormatError):
            service.create_dataset(csv_upload(SALES_ROWS, filename="sales.txt"))
        assert stored_files(storage_root) == []
        assert list(service.list_datasets()) == []

    def test_append_to_unknown_dataset(self, service: DatasetPublishingService) -> None:
        with pytest.raises(NotFoundError):
            service.append_version(uuid.uuid4(), csv_upload(SALES_ROWS))

    def test_concurrent_appends_number_densely(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        barrier = threading.Barrier(8)
        errors: list[Exception] = []

        def upload() -> None:
            barrier.wait()
            try:
                service.append_version(dataset_id, csv_upload(SALES_ROWS))
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=upload) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        numbers = sorted(v.version_number for v in service.list_versions(dataset_id))
        assert numbers == list(range(1, 10))

    def test_versions_listed_newest_first(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.append_version(dataset_id, csv_upload(SALES_ROWS))

        assert [v.version_number for v in service.list_versions(dataset_id)] == [2, 1]

    def test_storage_keys_are_unique_per_call(self) -> None:
        dataset_id = uuid.uuid4()
        first = build_storage_key(dataset_id, 2, "my sales.csv")
        second = build_storage_key(dataset_id, 2, "my sales.csv")

        assert first != second
        assert first.startswith(f"{dataset_id}/v2/")
        assert first.endswith("_my_sales.csv")

    @pytest.mark.parametrize(
        ("filename", "file_format", "suffix"),
        [
            ("sales", "csv", "_sales.csv"),
            ("report.XLSX", "xlsx", "_report.XLSX"),
            ("report.txt", "csv", "_report.txt.csv"),
        ],
    )
    def test_storage_key_ends_in_parsed_format(self, filename, file_format, suffix) -> None:
        assert build_storage_key(uuid.uuid4(), 1, filename, file_format).endswith(suffix)


class TestStoreLevelConflict:
    def test_second_writer_for_same_number_conflicts(self, service, catalog_store) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        schema = SchemaResult(
            row_count=3,
            columns=("region", "product", "revenue"),
            file_size=64,
            filename="sales.csv",
        )

        first = catalog_store.load(dataset_id)
        second = catalog_store.load(dataset_id)
        catalog_store.add_version(first, first.append_version(schema, file_path="a"))

        with pytest.raises(VersionConflictError):
            catalog_store.add_version(second, second.append_version(schema, file_path="b"))
        assert len(catalog_store.load(dataset_id).versions) == 2


# ---------------------------------------------------------------------------
# Storage failures and compensation
# ---------------------------------------------------------------------------


class TestStorageFailures:
    def test_put_is_retried_once(self, catalog_store, file_store) -> None:
        flaky = FlakyFileStore(file_store, put_failures=1)
        service = _service(catalog_store, flaky, max_retries=1)

        catalog = service.create_dataset(csv_upload(SALES_ROWS))

        assert flaky.put_attempts == 2
        assert catalog.latest().version_number == 1

    def test_put_failure_surfaces_after_retry(self, catalog_store, file_store) -> None:
        flaky = FlakyFileStore(file_store, put_failures=2)
        service = _service(catalog_store, flaky, max_retries=1)

        with pytest.raises(StorageUnavailableError):
            service.create_dataset(csv_upload(SALES_ROWS))

        assert flaky.put_attempts == 2
        assert list(service.list_datasets()) == []

    def test_failed_persistence_deletes_stored_file(self, file_store, storage_root) -> None:
        store = FailingCatalogStore()
        service = _service(store, file_store)
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        files_before = stored_files(storage_root)

        store.fail_add_version = True
        with pytest.raises(CatalogPersistenceError):
            service.append_version(dataset_id, csv_upload(SALES_ROWS))

        assert stored_files(storage_root) == files_before
        assert len(store.load(dataset_id).versions) == 1

        store.fail_add_version = False
        assert service.append_version(dataset_id, csv_upload(SALES_ROWS)).version_number == 2

    def test_failed_status_write_keeps_stored_status(self, file_store) -> None:
        store = FailingCatalogStore()
        service = _service(store, file_store)
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.save_metadata(dataset_id, 1, language="en", fields=COMPLETE_EN)

        store.fail_update_status = True
        with pytest.raises(CatalogPersistenceError):
            service.submit(dataset_id, 1)

        assert store.load(dataset_id).find(1).status is VersionStatus.DRAFT


# ---------------------------------------------------------------------------
# Metadata and review
# ---------------------------------------------------------------------------


class TestReviewFlow:
    def test_submit_without_metadata(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id

        with pytest.raises(MetadataIncompleteError):
            service.submit(dataset_id, 1)
        assert service.get_dataset(dataset_id).find(1).status is VersionStatus.DRAFT

    def test_incomplete_english_metadata_is_not_saved(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id

        with pytest.raises(IncompleteMetadataError):
            service.save_metadata(dataset_id, 1, language="en", fields={"title": "Sales"})
        with pytest.raises(NotFoundError):
            service.get_metadata(dataset_id, 1)

    def test_overlong_metadata_is_rejected_before_storing(
        self, service: DatasetPublishingService
    ) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id

        with pytest.raises(FieldTooLongError) as exc_info:
            service.save_metadata(
                dataset_id, 1, language="en", fields={**COMPLETE_EN, "title": "t" * 600}
            )
        assert exc_info.value.details["field"] == "title"
        with pytest.raises(NotFoundError):
            service.get_metadata(dataset_id, 1)

    def test_overlong_filename_stores_nothing(
        self, service: DatasetPublishingService, storage_root: Path
    ) -> None:
        with pytest.raises(FieldTooLongError):
            service.create_dataset(csv_upload(SALES_ROWS, filename="s" * 300 + ".csv"))
        assert stored_files(storage_root) == []

    def test_submit_then_approve(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.save_metadata(dataset_id, 1, language="en", fields=COMPLETE_EN)

        assert service.submit(dataset_id, 1).status is VersionStatus.REVIEW
        assert service.approve(dataset_id, 1).status is VersionStatus.PUBLISHED

        with pytest.raises(InvalidTransitionError):
            service.reject(dataset_id, 1, comments="changed my mind")
        published = service.list_datasets(status=VersionStatus.PUBLISHED)
        assert [summary.dataset.id for summary in published] == [dataset_id]

    def test_reject_requires_comments(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.save_metadata(dataset_id, 1, language="en", fields=COMPLETE_EN)
        service.submit(dataset_id, 1)

        with pytest.raises(CommentsRequiredError):
            service.reject(dataset_id, 1, comments="  ")
        assert service.get_dataset(dataset_id).find(1).status is VersionStatus.REVIEW

        rejected = service.reject(dataset_id, 1, comments="Revenue is in the wrong currency")
        assert rejected.status is VersionStatus.REJECTED
        assert service.get_dataset(dataset_id).find(1).comments == "Revenue is in the wrong currency"

    def test_arabic_metadata_saved_incomplete_but_blocks_submit(
        self, service: DatasetPublishingService
    ) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        record = service.save_metadata(dataset_id, 1, language="ar", fields={"title": "المبيعات"})

        assert not record.is_complete
        with pytest.raises(MetadataIncompleteError):
            service.submit(dataset_id, 1)

    def test_latest_metadata_comes_from_newest_version(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.append_version(dataset_id, csv_upload(SALES_ROWS))
        service.save_metadata(dataset_id, 1, language="en", fields=COMPLETE_EN)
        service.save_metadata(
            dataset_id, 2, language="en", fields={**COMPLETE_EN, "title": "Regional sales v2"}
        )

        version, record = service.get_dataset(dataset_id).latest_metadata()
        assert version.version_number == 2
        assert record.title == "Regional sales v2"


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_draft_dataset_is_deleted_with_files(
        self, service: DatasetPublishingService, storage_root: Path
    ) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.append_version(dataset_id, csv_upload(SALES_ROWS))

        service.delete_dataset(dataset_id)

        assert stored_files(storage_root) == []
        with pytest.raises(NotFoundError):
            service.get_dataset(dataset_id)

    def test_dataset_in_review_cannot_be_deleted(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        service.save_metadata(dataset_id, 1, language="en", fields=COMPLETE_EN)
        service.submit(dataset_id, 1)

        with pytest.raises(DatasetLockedError):
            service.delete_dataset(dataset_id)
        assert service.get_dataset(dataset_id).id == dataset_id

    def test_unknown_dataset(self, service: DatasetPublishingService) -> None:
        with pytest.raises(NotFoundError):
            service.delete_dataset(uuid.uuid4())


# ---------------------------------------------------------------------------
# Preview and suggestions
# ---------------------------------------------------------------------------


class TestPreviewAndSuggestions:
    def test_preview_reads_latest_file(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        newer = [["region", "product", "revenue"], ["west", "gizmo", 5]]
        service.append_version(dataset_id, csv_upload(newer))

        preview = service.preview(dataset_id)

        assert preview.headers == ("region", "product", "revenue")
        assert preview.rows == (("west", "gizmo", "5"),)
        assert preview.total_rows == 1

    def test_preview_rows_are_capped(self, service: DatasetPublishingService) -> None:
        rows = [["id"]] + [[i] for i in range(50)]
        dataset_id = service.create_dataset(csv_upload(rows, filename="ids.csv")).id

        assert len(service.preview(dataset_id, rows=500).rows) == 20
        assert len(service.preview(dataset_id).rows) == 10
        assert len(service.preview(dataset_id, rows=3).rows) == 3

    def test_suggestions_feed_metadata(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id

        suggestions = service.suggest_metadata(dataset_id, MetadataLanguage.BOTH)

        assert len(suggestions) == 3
        assert suggestions[0].category == "Finance"
        assert all(item.title_arabic for item in suggestions)

        record = service.save_metadata(
            dataset_id, 1, language="both", fields=suggestions[0].to_fields()
        )
        assert record.is_complete
        assert service.submit(dataset_id, 1).status is VersionStatus.REVIEW

    def test_upload_typed_only_by_content_type_can_be_read_back(
        self, service: DatasetPublishingService
    ) -> None:
        upload = UploadedFile(filename="sales", content=make_csv(SALES_ROWS), content_type="text/csv")
        catalog = service.create_dataset(upload)

        assert catalog.latest().filename == "sales"
        assert catalog.latest().file_path.endswith("_sales.csv")
        assert service.preview(catalog.id).headers == ("region", "product", "revenue")
        assert len(service.suggest_metadata(catalog.id)) == 3

    def test_english_suggestions_have_no_arabic(self, service: DatasetPublishingService) -> None:
        dataset_id = service.create_dataset(csv_upload(SALES_ROWS)).id
        suggestions = service.suggest_metadata(dataset_id)
        assert all(item.title_arabic is None for item in suggestions)
