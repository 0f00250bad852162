"""
catalog/store.py

Contracts for the two external collaborators the catalog core consumes:

    FileStore     durable bytes addressed by a caller-supplied key
    CatalogStore  persistence of datasets, versions and metadata records

plus an in-process CatalogStore used by tests and single-process tooling.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from catalog.aggregate import AppendResult, DatasetCatalog
from catalog.errors import InvalidTransitionError, NotFoundError, VersionConflictError
from catalog.metadata import MetadataRecord
from catalog.types import Dataset, DatasetVersion, VersionStatus


class FileStore(Protocol):
    def put(self, content: bytes, key: str) -> str:
        """Persist ``content`` under ``key`` and return the stored path."""
        ...

    def get(self, path: str) -> bytes:
        ...

    def delete(self, path: str) -> None:
        ...


@dataclass(frozen=True)
class DatasetSummary:
    """
    One dataset with its newest version, as returned by listings.
    """

    dataset: Dataset
    latest_version: DatasetVersion
    version_count: int


class CatalogStore(Protocol):
    def create(self, catalog: DatasetCatalog) -> None:
        """Persist a new dataset together with its version 1."""
        ...

    def load(self, dataset_id: uuid.UUID) -> DatasetCatalog:
        """Raise NotFoundError when the dataset does not exist."""
        ...

    def add_version(self, catalog: DatasetCatalog, result: AppendResult) -> None:
        """
        Persist an appended version.

        Must fail with VersionConflictError if another writer already stored
        ``result.version.version_number`` for this dataset.
        """
        ...

    def update_status(self, version: DatasetVersion, *, expected: VersionStatus) -> None:
        """
        Persist a review transition, only if the stored status is ``expected``.
        """
        ...

    def save_metadata(self, version: DatasetVersion, record: MetadataRecord) -> None:
        ...

    def list_summaries(
        self,
        *,
        status: VersionStatus | None = None,
        limit: int = 100,
    ) -> Sequence[DatasetSummary]:
        ...

    def delete(self, dataset_id: uuid.UUID) -> None:
        ...


class InMemoryCatalogStore:
    """
    Thread-safe CatalogStore keeping deep copies of every aggregate.

    Callers never share objects with the store, so an aggregate mutated by a
    failed request does not leak into later loads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._datasets: dict[uuid.UUID, Dataset] = {}
        self._versions: dict[uuid.UUID, list[DatasetVersion]] = {}
        self._metadata: dict[uuid.UUID, dict[uuid.UUID, MetadataRecord]] = {}

    def create(self, catalog: DatasetCatalog) -> None:
        with self._lock:
            self._datasets[catalog.id] = copy.deepcopy(catalog.dataset)
            self._versions[catalog.id] = copy.deepcopy(list(catalog.versions))
            self._metadata[catalog.id] = {}

    def load(self, dataset_id: uuid.UUID) -> DatasetCatalog:
        with self._lock:
            dataset = self._datasets.get(dataset_id)
            if dataset is None:
                raise NotFoundError(f"Dataset not found: {dataset_id}")
            return DatasetCatalog.restore(
                copy.deepcopy(dataset),
                copy.deepcopy(self._versions[dataset_id]),
                dict(self._metadata[dataset_id]),
            )

    def add_version(self, catalog: DatasetCatalog, result: AppendResult) -> None:
        version = result.version
        with self._lock:
            stored = self._versions.get(catalog.id)
            if stored is None:
                raise NotFoundError(f"Dataset not found: {catalog.id}")
            if len(stored) != version.version_number - 1:
                raise VersionConflictError(
                    f"Version {version.version_number} of dataset {catalog.id} "
                    "was already created by another request.",
                    dataset_id=str(catalog.id),
                    version_number=version.version_number,
                )
            stored.append(copy.deepcopy(version))
            if result.stats_changed:
                self._datasets[catalog.id] = copy.deepcopy(catalog.dataset)

    def update_status(self, version: DatasetVersion, *, expected: VersionStatus) -> None:
        with self._lock:
            stored = self._find_version(version)
            if stored.status is not expected:
                raise InvalidTransitionError(stored.status.value, version.status.value)
            stored.status = version.status
            stored.comments = version.comments
            stored.updated_at = version.updated_at

    def save_metadata(self, version: DatasetVersion, record: MetadataRecord) -> None:
        with self._lock:
            self._find_version(version)
            self._metadata[version.dataset_id][version.id] = record

    def list_summaries(
        self,
        *,
        status: VersionStatus | None = None,
        limit: int = 100,
    ) -> list[DatasetSummary]:
        with self._lock:
            summaries = [
                DatasetSummary(
                    dataset=copy.deepcopy(dataset),
                    latest_version=copy.deepcopy(self._versions[dataset_id][-1]),
                    version_count=len(self._versions[dataset_id]),
                )
                for dataset_id, dataset in self._datasets.items()
            ]
        if status is not None:
            summaries = [item for item in summaries if item.latest_version.status is status]
        summaries.sort(key=lambda item: item.dataset.created_at, reverse=True)
        return summaries[: max(1, limit)]

    def delete(self, dataset_id: uuid.UUID) -> None:
        with self._lock:
            if self._datasets.pop(dataset_id, None) is None:
                raise NotFoundError(f"Dataset not found: {dataset_id}")
            self._versions.pop(dataset_id, None)
            self._metadata.pop(dataset_id, None)

    def _find_version(self, version: DatasetVersion) -> DatasetVersion:
        for stored in self._versions.get(version.dataset_id, []):
            if stored.id == version.id:
                return stored
        raise NotFoundError(f"Version not found: {version.id}")
