"""
catalog/version_chain.py

Ordered, append-only sequence of versions for one dataset.

Versions live in a list whose index is ``version_number - 1``, so numbering is
dense (1..N) by construction and never derived from "max + 1" over stored rows.
The chain holds no lock of its own; callers serialize appends per dataset.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from catalog.errors import CatalogPersistenceError, NotFoundError, SchemaMismatchError
from catalog.types import DatasetVersion, SchemaResult


class VersionChain:
    def __init__(self, dataset_id: uuid.UUID) -> None:
        self._dataset_id = dataset_id
        self._canonical_columns: frozenset[str] | None = None
        self._versions: list[DatasetVersion] = []

    @classmethod
    def restore(
        cls,
        dataset_id: uuid.UUID,
        columns: Iterable[str],
        versions: Iterable[DatasetVersion],
    ) -> VersionChain:
        """
        Rebuild a chain from persisted versions.

        Refuses any sequence that is not exactly 1..N for this dataset.
        """

        chain = cls(dataset_id)
        ordered = sorted(versions, key=lambda version: version.version_number)
        for expected, version in enumerate(ordered, start=1):
            if version.version_number != expected:
                raise CatalogPersistenceError(
                    f"Dataset {dataset_id} has a broken version sequence: "
                    f"expected {expected}, found {version.version_number}.",
                    dataset_id=str(dataset_id),
                )
            if version.dataset_id != dataset_id:
                raise CatalogPersistenceError(
                    f"Version {version.id} does not belong to dataset {dataset_id}.",
                    dataset_id=str(dataset_id),
                )
        chain._versions = list(ordered)
        if chain._versions:
            chain._canonical_columns = frozenset(columns)
        return chain

    @property
    def dataset_id(self) -> uuid.UUID:
        return self._dataset_id

    @property
    def versions(self) -> Sequence[DatasetVersion]:
        return tuple(self._versions)

    @property
    def canonical_columns(self) -> frozenset[str] | None:
        return self._canonical_columns

    def __len__(self) -> int:
        return len(self._versions)

    @property
    def next_version_number(self) -> int:
        return len(self._versions) + 1

    def admit(self, schema: SchemaResult) -> int:
        """
        Check ``schema`` against the canonical column set without mutating.

        Returns the number the appended version would receive.
        """

        if self._canonical_columns is not None:
            incoming = schema.column_set
            if incoming != self._canonical_columns:
                raise SchemaMismatchError(
                    missing=self._canonical_columns - incoming,
                    extra=incoming - self._canonical_columns,
                )
        return self.next_version_number

    def append(
        self,
        schema: SchemaResult,
        *,
        file_path: str,
        comments: str | None = None,
    ) -> DatasetVersion:
        """
        Create the next draft version.

        The first append establishes the canonical column set.
        """

        version_number = self.admit(schema)
        version = DatasetVersion(
            dataset_id=self._dataset_id,
            version_number=version_number,
            file_path=file_path,
            filename=schema.filename,
            row_count=schema.row_count,
            file_size=schema.file_size,
            comments=comments,
        )
        if self._canonical_columns is None:
            self._canonical_columns = schema.column_set
        self._versions.append(version)
        return version

    def latest(self) -> DatasetVersion:
        if not self._versions:
            raise NotFoundError(f"Dataset {self._dataset_id} has no versions.")
        return self._versions[-1]

    def find(self, version_number: int) -> DatasetVersion:
        if 1 <= version_number <= len(self._versions):
            return self._versions[version_number - 1]
        raise NotFoundError(
            f"Version {version_number} not found for dataset {self._dataset_id}.",
            dataset_id=str(self._dataset_id),
            version_number=version_number,
        )
