"""
app/api/errors.py

Translation of catalog errors into HTTP responses.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from catalog.errors import (
    CatalogError,
    CatalogStateError,
    CatalogValidationError,
    NotFoundError,
    StorageUnavailableError,
    TooLargeError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: CatalogError) -> HTTPException:
    """
    Map one catalog error onto an HTTPException.

    Validation and state errors expose their structured body; infrastructure
    errors return a generic message and are logged with their cause.
    """

    if isinstance(exc, TooLargeError):
        return HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=exc.to_dict(),
        )
    if isinstance(exc, CatalogValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict())
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_dict())
    if isinstance(exc, CatalogStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict())

    logger.error("Catalog infrastructure failure: %s", exc, exc_info=exc)
    if isinstance(exc, StorageUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": exc.code, "message": "File storage is temporarily unavailable."},
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": exc.code, "message": "Unable to complete the catalog operation."},
    )
