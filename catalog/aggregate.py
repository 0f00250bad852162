"""
catalog/aggregate.py

DatasetCatalog: one dataset's identity, its immutable original column
schema, its version chain and the metadata attached to each version.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from catalog.errors import NotFoundError
from catalog.metadata import MetadataRecord
from catalog.types import Dataset, DatasetVersion, SchemaResult, VersionStatus, utcnow
from catalog.version_chain import VersionChain


@dataclass(frozen=True)
class AppendResult:
    """
    Outcome of appending a version to a catalog.

    stats_changed is False when the dataset's cached row count and file size
    already matched the new file, in which case no dataset update is needed.
    """

    version: DatasetVersion
    stats_changed: bool


class DatasetCatalog:
    def __init__(
        self,
        dataset: Dataset,
        chain: VersionChain,
        metadata: Mapping[uuid.UUID, MetadataRecord] | None = None,
    ) -> None:
        self._dataset = dataset
        self._chain = chain
        self._metadata: dict[uuid.UUID, MetadataRecord] = dict(metadata or {})

    @classmethod
    def start(
        cls,
        schema: SchemaResult,
        *,
        file_path: str,
        dataset_id: uuid.UUID | None = None,
    ) -> DatasetCatalog:
        """
        Create a dataset and its version 1 from the first upload.
        """

        dataset = Dataset(
            filename=schema.filename,
            file_size=schema.file_size,
            row_count=schema.row_count,
            columns=tuple(schema.columns),
            id=dataset_id or uuid.uuid4(),
        )
        chain = VersionChain(dataset.id)
        chain.append(schema, file_path=file_path)
        return cls(dataset, chain)

    @classmethod
    def restore(
        cls,
        dataset: Dataset,
        versions: Iterable[DatasetVersion],
        metadata: Mapping[uuid.UUID, MetadataRecord] | None = None,
    ) -> DatasetCatalog:
        chain = VersionChain.restore(dataset.id, dataset.columns, versions)
        return cls(dataset, chain, metadata)

    @property
    def id(self) -> uuid.UUID:
        return self._dataset.id

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def chain(self) -> VersionChain:
        return self._chain

    @property
    def versions(self) -> tuple[DatasetVersion, ...]:
        return tuple(self._chain.versions)

    def latest(self) -> DatasetVersion:
        return self._chain.latest()

    def find(self, version_number: int) -> DatasetVersion:
        return self._chain.find(version_number)

    def find_by_id(self, version_id: uuid.UUID) -> DatasetVersion:
        for version in self._chain.versions:
            if version.id == version_id:
                return version
        raise NotFoundError(f"Version {version_id} not found for dataset {self.id}.")

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def admit(self, schema: SchemaResult) -> int:
        return self._chain.admit(schema)

    def append_version(
        self,
        schema: SchemaResult,
        *,
        file_path: str,
        comments: str | None = None,
    ) -> AppendResult:
        version = self._chain.append(schema, file_path=file_path, comments=comments)
        return AppendResult(version=version, stats_changed=self._refresh_stats(schema))

    def _refresh_stats(self, schema: SchemaResult) -> bool:
        dataset = self._dataset
        if dataset.row_count == schema.row_count and dataset.file_size == schema.file_size:
            return False
        dataset.row_count = schema.row_count
        dataset.file_size = schema.file_size
        dataset.updated_at = utcnow()
        return True

    @property
    def all_draft(self) -> bool:
        return all(version.status is VersionStatus.DRAFT for version in self._chain.versions)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def metadata_for(self, version: DatasetVersion) -> MetadataRecord | None:
        return self._metadata.get(version.id)

    def attach_metadata(self, version: DatasetVersion, record: MetadataRecord) -> MetadataRecord:
        """
        Validate and attach ``record`` to ``version``, replacing any prior record.
        """

        self.find_by_id(version.id)
        record.validate_for_save()
        self._metadata[version.id] = record
        return record

    def latest_metadata(self) -> tuple[DatasetVersion, MetadataRecord] | None:
        """
        Return the newest version carrying metadata together with its record.
        """

        for version in reversed(self._chain.versions):
            record = self._metadata.get(version.id)
            if record is not None:
                return version, record
        return None
