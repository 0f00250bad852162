"""
catalog/errors.py

Error taxonomy for the dataset catalog core.

Three families, mapped by the HTTP layer onto status codes:

    CatalogValidationError      user-correctable input problems (400 / 413)
    CatalogStateError           stale or incorrect client view (404 / 409)
    CatalogInfrastructureError  storage or persistence failures (5xx)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class CatalogError(Exception):
    """Base exception for catalog failures."""

    code: str = "catalog_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), **self.details}


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class CatalogValidationError(CatalogError):
    """Raised when caller input cannot be accepted as given."""

    code = "validation_error"


class UnsupportedFormatError(CatalogValidationError):
    code = "unsupported_format"

    def __init__(self, extension: str, allowed: Iterable[str]) -> None:
        allowed_sorted = sorted(allowed)
        shown = f".{extension}" if extension else "(none)"
        super().__init__(
            f"Unsupported file type {shown}. Allowed: {', '.join(allowed_sorted)}.",
            extension=extension,
            allowed=allowed_sorted,
        )


class EmptyFileError(CatalogValidationError):
    code = "empty_file"


class TooLargeError(CatalogValidationError):
    code = "too_large"

    def __init__(self, file_size: int, limit_bytes: int) -> None:
        super().__init__(
            f"File is too large ({file_size} bytes). "
            f"Maximum size is {limit_bytes} bytes.",
            file_size=file_size,
            limit_bytes=limit_bytes,
        )


class NoColumnsError(CatalogValidationError):
    code = "no_columns"


class FieldTooLongError(CatalogValidationError):
    code = "too_long"

    def __init__(self, field: str, length: int, max_length: int) -> None:
        super().__init__(
            f"{field} is too long ({length} characters). "
            f"Maximum length is {max_length}.",
            field=field,
            length=length,
            max_length=max_length,
        )


class ParseError(CatalogValidationError):
    code = "parse_error"

    def __init__(self, message: str, *, row_index: int | None = None) -> None:
        super().__init__(message, row_index=row_index)
        self.row_index = row_index


class SchemaMismatchError(CatalogValidationError):
    code = "schema_mismatch"

    def __init__(self, *, missing: Iterable[str], extra: Iterable[str]) -> None:
        missing_sorted = sorted(missing)
        extra_sorted = sorted(extra)
        parts: list[str] = []
        if missing_sorted:
            parts.append(f"missing {missing_sorted}")
        if extra_sorted:
            parts.append(f"unexpected {extra_sorted}")
        super().__init__(
            "The new file must have the same columns as the original dataset: "
            + "; ".join(parts)
            + ".",
            missing=missing_sorted,
            extra=extra_sorted,
        )
        self.missing = tuple(missing_sorted)
        self.extra = tuple(extra_sorted)


class IncompleteMetadataError(CatalogValidationError):
    """Raised when a metadata save violates its language-mode rule."""

    code = "incomplete_metadata"

    def __init__(self, language: str, missing_fields: Iterable[str]) -> None:
        fields = list(missing_fields)
        super().__init__(
            f"Metadata for language '{language}' is missing: {', '.join(fields)}.",
            language=language,
            missing_fields=fields,
        )
        self.missing_fields = tuple(fields)


class MetadataIncompleteError(CatalogValidationError):
    """Raised when a version is submitted without complete metadata."""

    code = "metadata_incomplete"


class CommentsRequiredError(CatalogValidationError):
    code = "comments_required"

    def __init__(self) -> None:
        super().__init__("Comments are required when rejecting a version.")


# ---------------------------------------------------------------------------
# State errors
# ---------------------------------------------------------------------------


class CatalogStateError(CatalogError):
    """Raised when the requested operation does not fit the current state."""

    code = "state_error"


class NotFoundError(CatalogStateError):
    code = "not_found"


class InvalidTransitionError(CatalogStateError):
    code = "invalid_transition"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move a version from '{current}' to '{requested}'.",
            current=current,
            requested=requested,
        )
        self.current = current
        self.requested = requested


class VersionConflictError(CatalogStateError):
    """Raised when a concurrent writer already claimed the version number."""

    code = "version_conflict"


class DatasetLockedError(CatalogStateError):
    """Raised when a dataset cannot be deleted because review has started."""

    code = "dataset_locked"


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------


class CatalogInfrastructureError(CatalogError):
    """Raised for failures outside the caller's control."""

    code = "infrastructure_error"


class StorageUnavailableError(CatalogInfrastructureError):
    code = "storage_unavailable"


class CatalogPersistenceError(CatalogInfrastructureError):
    code = "persistence_error"
