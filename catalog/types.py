"""
catalog/types.py

Domain types shared by the ingestion pipeline, version chain and review
workflow.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VersionStatus(str, Enum):
    """Closed set of review states for a dataset version."""

    DRAFT = "draft"
    REVIEW = "review"
    PUBLISHED = "published"
    REJECTED = "rejected"


class MetadataLanguage(str, Enum):
    EN = "en"
    AR = "ar"
    BOTH = "both"


@dataclass(frozen=True)
class SchemaResult:
    """
    Output of schema extraction for one uploaded file.
    """

    row_count: int
    columns: tuple[str, ...]
    file_size: int
    filename: str = ""
    file_format: str = ""

    @property
    def column_set(self) -> frozenset[str]:
        return frozenset(self.columns)


@dataclass(frozen=True)
class FilePreview:
    """
    First rows of a stored file, rendered as strings.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    total_rows: int


@dataclass
class DatasetVersion:
    """
    One concrete file submission for a dataset.

    status and comments are only changed through ReviewWorkflow.
    """

    dataset_id: uuid.UUID
    version_number: int
    file_path: str
    filename: str
    row_count: int
    file_size: int
    status: VersionStatus = VersionStatus.DRAFT
    comments: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Dataset:
    """
    Identity and cached latest-file statistics for one dataset.

    columns is the schema established by version 1 and never reassigned.
    """

    filename: str
    file_size: int
    row_count: int
    columns: tuple[str, ...]
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
