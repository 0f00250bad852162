"""
app/api/routers/datasets.py

Dataset and version HTTP endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Form, Query, status

from app.api.dependencies import get_dataset_upload
from app.api.errors import to_http_exception
from app.api.responses import dataset_response, detail_response, version_response
from app.schemas.datasets import (
    DatasetCreatedResponse,
    DatasetDetailResponse,
    DatasetSummaryResponse,
    DatasetVersionResponse,
    PreviewResponse,
)
from app.services.publishing_service import (
    DatasetPublishingService,
    UploadedFile,
    get_publishing_service,
)
from catalog.errors import CatalogError
from catalog.types import VersionStatus

router = APIRouter(prefix="/datasets", tags=["datasets"])


@router.post("", response_model=DatasetCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_dataset(
    upload: UploadedFile = Depends(get_dataset_upload),
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> DatasetCreatedResponse:
    """
    Create a dataset from its first file; the file becomes draft version 1.
    """

    try:
        catalog = service.create_dataset(upload)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc

    return DatasetCreatedResponse(
        dataset=dataset_response(catalog.dataset),
        version=version_response(catalog.latest()),
    )


@router.get("", response_model=list[DatasetSummaryResponse])
def list_datasets(
    status_filter: VersionStatus | None = Query(
        default=None,
        alias="status",
        description="Only datasets whose latest version has this status",
    ),
    limit: int = Query(default=100, ge=1, le=500),
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> list[DatasetSummaryResponse]:
    try:
        summaries = service.list_datasets(status=status_filter, limit=limit)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc

    return [
        DatasetSummaryResponse(
            dataset=dataset_response(summary.dataset),
            latest_version=version_response(summary.latest_version),
            version_count=summary.version_count,
        )
        for summary in summaries
    ]


@router.get("/{dataset_id}", response_model=DatasetDetailResponse)
def get_dataset(
    dataset_id: uuid.UUID,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> DatasetDetailResponse:
    try:
        catalog = service.get_dataset(dataset_id)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return detail_response(catalog)


@router.delete("/{dataset_id}")
def delete_dataset(
    dataset_id: uuid.UUID,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> dict[str, str]:
    """
    Delete a dataset while all of its versions are still drafts.
    """

    try:
        service.delete_dataset(dataset_id)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return {"message": "Dataset deleted", "dataset_id": str(dataset_id)}


@router.get("/{dataset_id}/versions", response_model=list[DatasetVersionResponse])
def list_versions(
    dataset_id: uuid.UUID,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> list[DatasetVersionResponse]:
    try:
        versions = service.list_versions(dataset_id)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return [version_response(version) for version in versions]


@router.post(
    "/{dataset_id}/versions",
    response_model=DatasetVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
def append_version(
    dataset_id: uuid.UUID,
    upload: UploadedFile = Depends(get_dataset_upload),
    comments: str | None = Form(default=None),
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> DatasetVersionResponse:
    """
    Upload a new revision; its columns must match the dataset's original set.
    """

    try:
        version = service.append_version(dataset_id, upload, comments=comments)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return version_response(version)


@router.get("/{dataset_id}/preview", response_model=PreviewResponse)
def preview_dataset(
    dataset_id: uuid.UUID,
    rows: int | None = Query(default=None, ge=1, description="Number of data rows to return"),
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> PreviewResponse:
    try:
        preview = service.preview(dataset_id, rows)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc

    return PreviewResponse(
        headers=list(preview.headers),
        rows=[list(row) for row in preview.rows],
        total_rows=preview.total_rows,
    )
