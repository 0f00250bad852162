"""
app/services/publishing_service.py

Request-scoped orchestration of the dataset catalog.

Upload flow for a new version:

    1. SchemaExtractor.extract()          outside any lock, pure over bytes
    2. per-dataset lock, load aggregate
    3. DatasetCatalog.admit()             column-set check, next number
    4. FileStore.put()                    retried once on StorageUnavailable
    5. DatasetCatalog.append_version()
    6. CatalogStore.add_version()         CAS on the dataset's version counter

If step 5 or 6 fails the stored bytes are deleted as a compensating action,
so a failed request leaves neither a file nor a version behind.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Any, TypeVar

from catalog.aggregate import DatasetCatalog
from catalog.errors import CatalogError, DatasetLockedError, NotFoundError
from catalog.extractor import SchemaExtractor
from catalog.locks import KeyedLockRegistry
from catalog.metadata import MetadataRecord, build_metadata_record, parse_language
from catalog.retry import call_with_retry
from catalog.review import ReviewWorkflow
from catalog.store import CatalogStore, DatasetSummary, FileStore
from catalog.suggestions import (
    BaseMetadataSuggester,
    HeuristicMetadataSuggester,
    MetadataSuggestion,
)
from catalog.types import (
    DatasetVersion,
    FilePreview,
    MetadataLanguage,
    SchemaResult,
    VersionStatus,
)
from db.repositories.storage import sanitize_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SUGGESTION_SAMPLE_ROWS = 3


@dataclass(frozen=True)
class UploadedFile:
    """
    Raw upload as received from the HTTP layer.
    """

    filename: str
    content: bytes
    content_type: str | None = None


def build_storage_key(
    dataset_id: uuid.UUID,
    version_number: int,
    filename: str,
    file_format: str = "",
) -> str:
    """
    Key under which a version's bytes are stored.

    The random token keeps two racing writers for the same version number
    from overwriting each other's file before the store arbitrates. The key
    always ends in the parsed format's suffix, so the stored file can be
    read back even when the upload name had none.
    """

    safe_name = sanitize_key(filename or "upload").name
    if file_format and PurePosixPath(safe_name).suffix.lower() != f".{file_format}":
        safe_name = f"{safe_name}.{file_format}"
    return f"{dataset_id}/v{version_number}/{uuid.uuid4().hex}_{safe_name}"


def _clean_comments(comments: str | None) -> str | None:
    if comments is None:
        return None
    stripped = comments.strip()
    return stripped or None


class DatasetPublishingService:
    """
    Coordinates ingestion, versioning, metadata and review for datasets.
    """

    def __init__(
        self,
        *,
        store: CatalogStore,
        file_store: FileStore,
        extractor: SchemaExtractor | None = None,
        suggester: BaseMetadataSuggester | None = None,
        locks: KeyedLockRegistry | None = None,
        max_retries: int = 1,
        retry_backoff_seconds: float = 0.0,
        preview_default_rows: int = 10,
        preview_max_rows: int = 20,
    ) -> None:
        self._store = store
        self._file_store = file_store
        self._extractor = extractor or SchemaExtractor()
        self._suggester = suggester or HeuristicMetadataSuggester()
        self._locks = locks or KeyedLockRegistry()
        self._workflow = ReviewWorkflow(locks=self._locks)
        self._max_retries = max(0, max_retries)
        self._retry_backoff_seconds = max(0.0, retry_backoff_seconds)
        self._preview_max_rows = max(1, preview_max_rows)
        self._preview_default_rows = min(self._preview_max_rows, max(1, preview_default_rows))

    # ------------------------------------------------------------------
    # Datasets and versions
    # ------------------------------------------------------------------

    def create_dataset(self, upload: UploadedFile) -> DatasetCatalog:
        """
        Create a dataset and its draft version 1 from the first upload.
        """

        schema = self._extract(upload)
        dataset_id = uuid.uuid4()
        file_path = self._put(
            upload.content,
            build_storage_key(dataset_id, 1, schema.filename, schema.file_format),
        )

        try:
            catalog = DatasetCatalog.start(schema, file_path=file_path, dataset_id=dataset_id)
            self._store.create(catalog)
        except Exception:
            self._compensate(file_path)
            raise

        logger.info(
            "Dataset created dataset_id=%s filename=%s rows=%d columns=%d",
            dataset_id,
            schema.filename,
            schema.row_count,
            len(schema.columns),
        )
        return catalog

    def append_version(
        self,
        dataset_id: uuid.UUID,
        upload: UploadedFile,
        *,
        comments: str | None = None,
    ) -> DatasetVersion:
        """
        Append the next draft version; its column set must match version 1.
        """

        schema = self._extract(upload)

        with self._locks.hold(dataset_id):
            catalog = self._store.load(dataset_id)
            try:
                version_number = catalog.admit(schema)
            except CatalogError as exc:
                logger.warning("Version rejected for dataset_id=%s: %s", dataset_id, exc)
                raise

            file_path = self._put(
                upload.content,
                build_storage_key(
                    dataset_id, version_number, schema.filename, schema.file_format
                ),
            )
            try:
                result = catalog.append_version(
                    schema,
                    file_path=file_path,
                    comments=_clean_comments(comments) or f"Version {version_number}",
                )
                self._store.add_version(catalog, result)
            except Exception:
                self._compensate(file_path)
                raise

        logger.info(
            "Version appended dataset_id=%s version=%d rows=%d stats_changed=%s",
            dataset_id,
            result.version.version_number,
            schema.row_count,
            result.stats_changed,
        )
        return result.version

    def get_dataset(self, dataset_id: uuid.UUID) -> DatasetCatalog:
        return self._store.load(dataset_id)

    def list_datasets(
        self,
        *,
        status: VersionStatus | None = None,
        limit: int = 100,
    ) -> Sequence[DatasetSummary]:
        return self._store.list_summaries(status=status, limit=limit)

    def list_versions(self, dataset_id: uuid.UUID) -> list[DatasetVersion]:
        """Versions of a dataset, newest first."""
        return list(reversed(self._store.load(dataset_id).versions))

    def delete_dataset(self, dataset_id: uuid.UUID) -> None:
        """
        Delete a dataset and its stored files while every version is a draft.
        """

        with self._locks.hold(dataset_id):
            catalog = self._store.load(dataset_id)
            if not catalog.all_draft:
                raise DatasetLockedError(
                    "Only datasets whose versions are all drafts can be deleted.",
                    dataset_id=str(dataset_id),
                )
            self._store.delete(dataset_id)

        for version in catalog.versions:
            self._discard(version.file_path)
        logger.info(
            "Dataset deleted dataset_id=%s versions=%d", dataset_id, len(catalog.versions)
        )

    def preview(self, dataset_id: uuid.UUID, rows: int | None = None) -> FilePreview:
        """
        First rows of the latest version's stored file.
        """

        limit = self._preview_default_rows if rows is None else rows
        limit = min(self._preview_max_rows, max(1, limit))

        version = self._store.load(dataset_id).latest()
        raw = self._get(version.file_path)
        return self._extractor.preview(raw, version.file_path, limit=limit)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def save_metadata(
        self,
        dataset_id: uuid.UUID,
        version_number: int,
        *,
        language: MetadataLanguage | str | None,
        fields: Mapping[str, Any],
    ) -> MetadataRecord:
        """
        Validate and store metadata for one version, replacing any prior record.
        """

        record = build_metadata_record(language, fields)
        with self._locks.hold(dataset_id):
            catalog = self._store.load(dataset_id)
            version = catalog.find(version_number)
            catalog.attach_metadata(version, record)
            self._store.save_metadata(version, record)

        logger.info(
            "Metadata saved dataset_id=%s version=%d language=%s complete=%s",
            dataset_id,
            version_number,
            record.language.value,
            record.is_complete,
        )
        return record

    def get_metadata(self, dataset_id: uuid.UUID, version_number: int) -> MetadataRecord:
        catalog = self._store.load(dataset_id)
        version = catalog.find(version_number)
        record = catalog.metadata_for(version)
        if record is None:
            raise NotFoundError(
                f"No metadata saved for version {version_number} of dataset {dataset_id}.",
                dataset_id=str(dataset_id),
                version_number=version_number,
            )
        return record

    def suggest_metadata(
        self,
        dataset_id: uuid.UUID,
        language: MetadataLanguage | str | None = None,
    ) -> list[MetadataSuggestion]:
        """
        Candidate metadata for the dataset, built from its latest file.

        Candidates are untrusted text; saving one goes through save_metadata.
        """

        mode = parse_language(language)
        catalog = self._store.load(dataset_id)
        version = catalog.latest()
        raw = self._get(version.file_path)
        sample = self._extractor.preview(
            raw, version.file_path, limit=_SUGGESTION_SAMPLE_ROWS
        )

        schema = SchemaResult(
            row_count=version.row_count,
            columns=catalog.dataset.columns,
            file_size=version.file_size,
            filename=catalog.dataset.filename,
        )
        return self._suggester.suggest(schema, sample.rows, mode)

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def submit(
        self,
        dataset_id: uuid.UUID,
        version_number: int,
        *,
        comments: str | None = None,
    ) -> DatasetVersion:
        with self._locks.hold(dataset_id):
            catalog = self._store.load(dataset_id)
            version = catalog.find(version_number)
            expected = version.status
            self._workflow.submit(version, catalog.metadata_for, comments)
            self._store.update_status(version, expected=expected)
        return version

    def approve(
        self,
        dataset_id: uuid.UUID,
        version_number: int,
        *,
        comments: str | None = None,
    ) -> DatasetVersion:
        return self._review(
            dataset_id,
            version_number,
            lambda version: self._workflow.approve(version, comments),
        )

    def reject(
        self,
        dataset_id: uuid.UUID,
        version_number: int,
        *,
        comments: str | None,
    ) -> DatasetVersion:
        return self._review(
            dataset_id,
            version_number,
            lambda version: self._workflow.reject(version, comments),
        )

    def _review(
        self,
        dataset_id: uuid.UUID,
        version_number: int,
        transition: Callable[[DatasetVersion], DatasetVersion],
    ) -> DatasetVersion:
        with self._locks.hold(dataset_id):
            catalog = self._store.load(dataset_id)
            version = catalog.find(version_number)
            expected = version.status
            transition(version)
            self._store.update_status(version, expected=expected)
        return version

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _extract(self, upload: UploadedFile) -> SchemaResult:
        try:
            return self._extractor.extract(upload.content, upload.content_type, upload.filename)
        except CatalogError as exc:
            logger.warning("Upload rejected filename=%s: %s", upload.filename, exc)
            raise

    def _with_retry(self, operation: Callable[[], T], description: str) -> T:
        return call_with_retry(
            operation,
            description=description,
            max_retries=self._max_retries,
            backoff_seconds=self._retry_backoff_seconds,
        )

    def _put(self, content: bytes, key: str) -> str:
        return self._with_retry(lambda: self._file_store.put(content, key), f"put {key}")

    def _get(self, path: str) -> bytes:
        return self._with_retry(lambda: self._file_store.get(path), f"get {path}")

    def _discard(self, path: str) -> None:
        try:
            self._file_store.delete(path)
        except CatalogError as exc:
            logger.warning("Could not delete stored file %s: %s", path, exc)

    def _compensate(self, path: str) -> None:
        logger.warning("Persistence failed; deleting stored file %s", path)
        self._discard(path)


@lru_cache(maxsize=1)
def get_publishing_service() -> DatasetPublishingService:
    """
    Build and cache the publishing service with env-driven settings.
    """

    from app.config import get_preview_settings, get_storage_settings, get_upload_settings
    from db.repositories.catalog_repository import SQLAlchemyCatalogStore
    from db.repositories.storage import LocalFileStorage

    upload = get_upload_settings()
    storage = get_storage_settings()
    preview = get_preview_settings()
    return DatasetPublishingService(
        store=SQLAlchemyCatalogStore(),
        file_store=LocalFileStorage(upload.storage_dir),
        extractor=SchemaExtractor(max_bytes=upload.max_bytes),
        max_retries=storage.max_retries,
        retry_backoff_seconds=storage.retry_backoff_seconds,
        preview_default_rows=preview.default_rows,
        preview_max_rows=preview.max_rows,
    )
