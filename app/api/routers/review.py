"""
app/api/routers/review.py

Review workflow endpoints: submit a draft, then approve or reject it.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from app.api.errors import to_http_exception
from app.api.responses import version_response
from app.schemas.datasets import DatasetVersionResponse, ReviewRequest, SubmitRequest
from app.services.publishing_service import DatasetPublishingService, get_publishing_service
from catalog.errors import CatalogError

router = APIRouter(prefix="/datasets", tags=["review"])


@router.post(
    "/{dataset_id}/versions/{version_number}/submit",
    response_model=DatasetVersionResponse,
)
def submit_version(
    dataset_id: uuid.UUID,
    version_number: int,
    payload: SubmitRequest | None = None,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> DatasetVersionResponse:
    """
    Move a draft version into review. Requires complete metadata.
    """

    comments = payload.comments if payload is not None else None
    try:
        version = service.submit(dataset_id, version_number, comments=comments)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return version_response(version)


@router.post(
    "/{dataset_id}/versions/{version_number}/review",
    response_model=DatasetVersionResponse,
)
def review_version(
    dataset_id: uuid.UUID,
    version_number: int,
    payload: ReviewRequest,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> DatasetVersionResponse:
    """
    Approve or reject a version in review. Rejections require comments.
    """

    try:
        if payload.action == "approve":
            version = service.approve(dataset_id, version_number, comments=payload.comments)
        else:
            version = service.reject(dataset_id, version_number, comments=payload.comments)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return version_response(version)
