"""
PostgreSQL-backed CatalogStore.

Maps the catalog aggregate onto the datasets / dataset_versions /
dataset_metadata tables. Concurrent writers are arbitrated by the database:

- appends bump datasets.version_count from N-1 to N in the same transaction
  that inserts version N, and (dataset_id, version_number) is unique;
- status changes only apply when the stored status is the expected one.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.aggregate import AppendResult, DatasetCatalog
from catalog.errors import (
    CatalogError,
    CatalogPersistenceError,
    InvalidTransitionError,
    NotFoundError,
    VersionConflictError,
)
from catalog.metadata import MetadataRecord, build_metadata_record
from catalog import types as domain
from catalog.store import DatasetSummary
from db.models.dataset import Dataset
from db.models.dataset_metadata import DatasetMetadata
from db.models.dataset_version import DatasetVersion


def _dataset_from_row(row: Dataset) -> domain.Dataset:
    return domain.Dataset(
        id=row.id,
        filename=row.filename,
        file_size=row.file_size_bytes,
        row_count=row.row_count,
        columns=tuple(row.columns or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _version_from_row(row: DatasetVersion) -> domain.DatasetVersion:
    return domain.DatasetVersion(
        id=row.id,
        dataset_id=row.dataset_id,
        version_number=row.version_number,
        file_path=row.file_path,
        filename=row.filename,
        row_count=row.row_count,
        file_size=row.file_size_bytes,
        status=domain.VersionStatus(row.status),
        comments=row.comments,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _version_to_row(version: domain.DatasetVersion) -> DatasetVersion:
    return DatasetVersion(
        id=version.id,
        dataset_id=version.dataset_id,
        version_number=version.version_number,
        file_path=version.file_path,
        filename=version.filename,
        row_count=version.row_count,
        file_size_bytes=version.file_size,
        status=version.status.value,
        comments=version.comments,
        created_at=version.created_at,
        updated_at=version.updated_at,
    )


def _record_from_row(row: DatasetMetadata) -> MetadataRecord:
    return build_metadata_record(
        row.language,
        {
            "title": row.title,
            "title_arabic": row.title_arabic,
            "description": row.description,
            "description_arabic": row.description_arabic,
            "category": row.category,
            "category_arabic": row.category_arabic,
            "tags": row.tags,
            "tags_arabic": row.tags_arabic,
            "author": row.author,
        },
    )


class SQLAlchemyCatalogStore:
    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        """
        Yield a session inside one transaction.

        Catalog errors raised inside pass through untouched; any other
        SQLAlchemy failure becomes CatalogPersistenceError.
        """

        try:
            with self._session_factory() as session:
                with session.begin():
                    yield session
        except CatalogError:
            raise
        except SQLAlchemyError as exc:
            raise CatalogPersistenceError(f"Failed to {action}.") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, catalog: DatasetCatalog) -> None:
        dataset = catalog.dataset
        with self._transaction("create dataset") as session:
            session.add(
                Dataset(
                    id=dataset.id,
                    filename=dataset.filename,
                    file_size_bytes=dataset.file_size,
                    row_count=dataset.row_count,
                    columns=list(dataset.columns),
                    version_count=len(catalog.versions),
                    created_at=dataset.created_at,
                    updated_at=dataset.updated_at,
                )
            )
            session.flush()
            session.add_all(_version_to_row(version) for version in catalog.versions)

    def add_version(self, catalog: DatasetCatalog, result: AppendResult) -> None:
        version = result.version
        values: dict = {"version_count": version.version_number}
        if result.stats_changed:
            values.update(
                row_count=catalog.dataset.row_count,
                file_size_bytes=catalog.dataset.file_size,
                updated_at=catalog.dataset.updated_at,
            )

        conflict = VersionConflictError(
            f"Version {version.version_number} of dataset {catalog.id} "
            "was already created by another request.",
            dataset_id=str(catalog.id),
            version_number=version.version_number,
        )
        try:
            with self._transaction("add dataset version") as session:
                claimed = session.execute(
                    update(Dataset)
                    .where(
                        Dataset.id == catalog.id,
                        Dataset.version_count == version.version_number - 1,
                    )
                    .values(**values)
                )
                if claimed.rowcount != 1:
                    if session.get(Dataset, catalog.id) is None:
                        raise NotFoundError(f"Dataset not found: {catalog.id}")
                    raise conflict
                session.add(_version_to_row(version))
                session.flush()
        except CatalogPersistenceError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise conflict from exc.__cause__
            raise

    def update_status(
        self,
        version: domain.DatasetVersion,
        *,
        expected: domain.VersionStatus,
    ) -> None:
        with self._transaction("update version status") as session:
            applied = session.execute(
                update(DatasetVersion)
                .where(
                    DatasetVersion.id == version.id,
                    DatasetVersion.status == expected.value,
                )
                .values(
                    status=version.status.value,
                    comments=version.comments,
                    updated_at=version.updated_at,
                )
            )
            if applied.rowcount == 1:
                return
            stored = session.scalar(
                select(DatasetVersion.status).where(DatasetVersion.id == version.id)
            )
            if stored is None:
                raise NotFoundError(f"Version not found: {version.id}")
            raise InvalidTransitionError(stored, version.status.value)

    def save_metadata(self, version: domain.DatasetVersion, record: MetadataRecord) -> None:
        values = record.to_dict()
        stmt = insert(DatasetMetadata).values(
            id=uuid.uuid4(),
            version_id=version.id,
            dataset_id=version.dataset_id,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DatasetMetadata.version_id],
            set_={**values, "updated_at": domain.utcnow()},
        )
        with self._transaction("save metadata") as session:
            exists = session.scalar(
                select(DatasetVersion.id).where(DatasetVersion.id == version.id)
            )
            if exists is None:
                raise NotFoundError(f"Version not found: {version.id}")
            session.execute(stmt)

    def delete(self, dataset_id: uuid.UUID) -> None:
        with self._transaction("delete dataset") as session:
            removed = session.execute(delete(Dataset).where(Dataset.id == dataset_id))
            if removed.rowcount == 0:
                raise NotFoundError(f"Dataset not found: {dataset_id}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, dataset_id: uuid.UUID) -> DatasetCatalog:
        with self._transaction("load dataset") as session:
            row = session.get(Dataset, dataset_id)
            if row is None:
                raise NotFoundError(f"Dataset not found: {dataset_id}")
            versions = session.scalars(
                select(DatasetVersion)
                .where(DatasetVersion.dataset_id == dataset_id)
                .order_by(DatasetVersion.version_number)
            ).all()
            metadata_rows = session.scalars(
                select(DatasetMetadata).where(DatasetMetadata.dataset_id == dataset_id)
            ).all()

            return DatasetCatalog.restore(
                _dataset_from_row(row),
                [_version_from_row(version) for version in versions],
                {meta.version_id: _record_from_row(meta) for meta in metadata_rows},
            )

    def list_summaries(
        self,
        *,
        status: domain.VersionStatus | None = None,
        limit: int = 100,
    ) -> list[DatasetSummary]:
        stmt = (
            select(Dataset, DatasetVersion)
            .join(
                DatasetVersion,
                (DatasetVersion.dataset_id == Dataset.id)
                & (DatasetVersion.version_number == Dataset.version_count),
            )
            .order_by(Dataset.created_at.desc())
            .limit(max(1, limit))
        )
        if status is not None:
            stmt = stmt.where(DatasetVersion.status == status.value)

        with self._transaction("list datasets") as session:
            return [
                DatasetSummary(
                    dataset=_dataset_from_row(dataset),
                    latest_version=_version_from_row(version),
                    version_count=dataset.version_count,
                )
                for dataset, version in session.execute(stmt).all()
            ]
