"""
app/api/responses.py

Builders turning catalog domain objects into API response models.
"""

from __future__ import annotations

from catalog.aggregate import DatasetCatalog
from catalog.metadata import MetadataRecord
from catalog.types import Dataset, DatasetVersion
from app.schemas.datasets import (
    DatasetDetailResponse,
    DatasetResponse,
    DatasetVersionResponse,
    MetadataResponse,
)


def dataset_response(dataset: Dataset) -> DatasetResponse:
    return DatasetResponse.model_validate(dataset)


def version_response(version: DatasetVersion) -> DatasetVersionResponse:
    return DatasetVersionResponse.model_validate(version)


def metadata_response(record: MetadataRecord) -> MetadataResponse:
    return MetadataResponse(
        **record.to_dict(),
        is_complete=record.is_complete,
        missing_fields=record.missing_fields(),
    )


def detail_response(catalog: DatasetCatalog) -> DatasetDetailResponse:
    latest = catalog.latest_metadata()
    return DatasetDetailResponse(
        dataset=dataset_response(catalog.dataset),
        versions=[version_response(version) for version in reversed(catalog.versions)],
        metadata=metadata_response(latest[1]) if latest else None,
        metadata_version=latest[0].version_number if latest else None,
    )
