"""
app/schemas/datasets.py

Request and response schemas for dataset catalog endpoints.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from catalog.types import MetadataLanguage, VersionStatus


class DatasetResponse(BaseModel):
    """
    API response model for a dataset's identity and latest-file statistics.
    """

    model_config = {"from_attributes": True}

    id: uuid.UUID
    filename: str
    file_size: int = Field(..., ge=0)
    row_count: int = Field(..., ge=0)
    columns: list[str]
    created_at: datetime
    updated_at: datetime


class DatasetVersionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    dataset_id: uuid.UUID
    version_number: int = Field(..., ge=1)
    filename: str
    row_count: int = Field(..., ge=0)
    file_size: int = Field(..., ge=0)
    status: VersionStatus
    comments: str | None = None
    created_at: datetime
    updated_at: datetime


class MetadataRequest(BaseModel):
    """
    Metadata payload for one version. Blank strings are treated as missing.
    """

    language: MetadataLanguage = MetadataLanguage.EN
    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    title_arabic: str | None = Field(default=None, max_length=500)
    description_arabic: str | None = None
    category: str | None = Field(default=None, max_length=100)
    category_arabic: str | None = Field(default=None, max_length=100)
    tags: list[str] | str | None = None
    tags_arabic: list[str] | str | None = None
    author: str | None = Field(default=None, max_length=255)


class MetadataResponse(BaseModel):
    language: MetadataLanguage
    title: str | None = None
    description: str | None = None
    title_arabic: str | None = None
    description_arabic: str | None = None
    category: str
    category_arabic: str | None = None
    tags: list[str] = Field(default_factory=list)
    tags_arabic: list[str] = Field(default_factory=list)
    author: str
    is_complete: bool
    missing_fields: list[str] = Field(default_factory=list)


class DatasetSummaryResponse(BaseModel):
    dataset: DatasetResponse
    latest_version: DatasetVersionResponse
    version_count: int = Field(..., ge=1)


class DatasetDetailResponse(BaseModel):
    """
    A dataset with all versions (newest first) and its most recent metadata.
    """

    dataset: DatasetResponse
    versions: list[DatasetVersionResponse]
    metadata: MetadataResponse | None = None
    metadata_version: int | None = None


class DatasetCreatedResponse(BaseModel):
    dataset: DatasetResponse
    version: DatasetVersionResponse


class PreviewResponse(BaseModel):
    headers: list[str]
    rows: list[list[str]]
    total_rows: int = Field(..., ge=0)


class SuggestionRequest(BaseModel):
    language: MetadataLanguage = MetadataLanguage.EN


class SuggestionResponse(BaseModel):
    model_config = {"from_attributes": True}

    title: str
    description: str
    category: str
    tags: list[str] = Field(default_factory=list)
    title_arabic: str | None = None
    description_arabic: str | None = None


class SubmitRequest(BaseModel):
    comments: str | None = None


class ReviewRequest(BaseModel):
    action: Literal["approve", "reject"]
    comments: str | None = None
