"""
app/api/routers/metadata.py

Version metadata and metadata suggestion endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from app.api.errors import to_http_exception
from app.api.responses import metadata_response
from app.schemas.datasets import (
    MetadataRequest,
    MetadataResponse,
    SuggestionRequest,
    SuggestionResponse,
)
from app.services.publishing_service import DatasetPublishingService, get_publishing_service
from catalog.errors import CatalogError

router = APIRouter(prefix="/datasets", tags=["metadata"])


@router.put(
    "/{dataset_id}/versions/{version_number}/metadata",
    response_model=MetadataResponse,
)
def save_metadata(
    dataset_id: uuid.UUID,
    version_number: int,
    payload: MetadataRequest,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> MetadataResponse:
    """
    Save metadata for one version, replacing whatever was saved before.

    English and bilingual payloads must be complete to be saved; Arabic
    payloads are stored as given and checked on submit.
    """

    fields = payload.model_dump(exclude={"language"})
    try:
        record = service.save_metadata(
            dataset_id,
            version_number,
            language=payload.language,
            fields=fields,
        )
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return metadata_response(record)


@router.get(
    "/{dataset_id}/versions/{version_number}/metadata",
    response_model=MetadataResponse,
)
def get_metadata(
    dataset_id: uuid.UUID,
    version_number: int,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> MetadataResponse:
    try:
        record = service.get_metadata(dataset_id, version_number)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return metadata_response(record)


@router.post(
    "/{dataset_id}/metadata/suggestions",
    response_model=list[SuggestionResponse],
)
def suggest_metadata(
    dataset_id: uuid.UUID,
    payload: SuggestionRequest | None = None,
    service: DatasetPublishingService = Depends(get_publishing_service),
) -> list[SuggestionResponse]:
    language = payload.language if payload is not None else None
    try:
        suggestions = service.suggest_metadata(dataset_id, language)
    except CatalogError as exc:
        raise to_http_exception(exc) from exc
    return [SuggestionResponse.model_validate(item) for item in suggestions]
