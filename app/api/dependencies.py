"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

from app.config import get_upload_settings
from app.services.publishing_service import UploadedFile
from catalog.errors import TooLargeError


def get_dataset_upload(file: UploadFile = File(...)) -> UploadedFile:
    """
    Read one uploaded dataset file into memory, refusing oversized bodies.

    At most ``UPLOAD_MAX_BYTES + 1`` bytes are read; format, emptiness and
    parse checks are left to the schema extractor.
    """

    limit = get_upload_settings().max_bytes
    try:
        content = file.file.read(limit + 1)
    finally:
        file.file.close()

    if len(content) > limit:
        file_size = file.size if file.size is not None else len(content)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=TooLargeError(file_size, limit).to_dict(),
        )

    return UploadedFile(
        filename=(file.filename or "").strip(),
        content=content,
        content_type=file.content_type,
    )
