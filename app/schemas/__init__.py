"""
app/schemas package marker.
"""

from app.schemas.datasets import (
    DatasetCreatedResponse,
    DatasetDetailResponse,
    DatasetResponse,
    DatasetSummaryResponse,
    DatasetVersionResponse,
    MetadataRequest,
    MetadataResponse,
    PreviewResponse,
    ReviewRequest,
    SubmitRequest,
    SuggestionRequest,
    SuggestionResponse,
)

__all__ = [
    "DatasetCreatedResponse",
    "DatasetDetailResponse",
    "DatasetResponse",
    "DatasetSummaryResponse",
    "DatasetVersionResponse",
    "MetadataRequest",
    "MetadataResponse",
    "PreviewResponse",
    "ReviewRequest",
    "SubmitRequest",
    "SuggestionRequest",
    "SuggestionResponse",
]
