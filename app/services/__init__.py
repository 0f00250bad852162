"""
app/services package marker.
"""

from app.services.publishing_service import (
    DatasetPublishingService,
    UploadedFile,
    get_publishing_service,
)

__all__ = [
    "DatasetPublishingService",
    "UploadedFile",
    "get_publishing_service",
]
