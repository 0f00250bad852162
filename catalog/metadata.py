"""
catalog/metadata.py

Descriptive metadata attached to a dataset version.

A record is one of three payload shapes keyed by language mode. Each shape
owns its completeness rule, so adding a language means adding a class rather
than another branch at every call site:

    EnglishMetadata    title + description
    ArabicMetadata     Arabic title/description, primary fields accepted as Arabic
    BilingualMetadata  all four title/description fields
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from catalog.errors import (
    CatalogValidationError,
    FieldTooLongError,
    IncompleteMetadataError,
)
from catalog.types import MetadataLanguage

DEFAULT_CATEGORY = "General"
DEFAULT_AUTHOR = "User"

# Column widths of the dataset_metadata table.
FIELD_MAX_LENGTHS: dict[str, int] = {
    "title": 500,
    "title_arabic": 500,
    "category": 100,
    "category_arabic": 100,
    "author": 255,
}


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_tags(values: Iterable[Any] | None) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    seen: dict[str, None] = {}
    for value in values:
        tag = _clean(value)
        if tag is not None:
            seen.setdefault(tag, None)
    return tuple(seen)


@dataclass(frozen=True)
class MetadataRecord(ABC):
    """
    Common fields for every language mode.

    Fields are normalized on construction: strings trimmed (blank -> None),
    tags de-duplicated in first-seen order, category defaulted.
    """

    language: ClassVar[MetadataLanguage]

    title: str | None = None
    description: str | None = None
    title_arabic: str | None = None
    description_arabic: str | None = None
    category: str = DEFAULT_CATEGORY
    category_arabic: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    tags_arabic: tuple[str, ...] = field(default_factory=tuple)
    author: str = DEFAULT_AUTHOR

    def __post_init__(self) -> None:
        for name in ("title", "description", "title_arabic", "description_arabic"):
            object.__setattr__(self, name, _clean(getattr(self, name)))
        category = _clean(self.category) or DEFAULT_CATEGORY
        object.__setattr__(self, "category", category)
        object.__setattr__(
            self, "category_arabic", _clean(self.category_arabic) or category
        )
        object.__setattr__(self, "tags", _clean_tags(self.tags))
        object.__setattr__(self, "tags_arabic", _clean_tags(self.tags_arabic))
        object.__setattr__(self, "author", _clean(self.author) or DEFAULT_AUTHOR)

        for name, max_length in FIELD_MAX_LENGTHS.items():
            value = getattr(self, name)
            if value is not None and len(value) > max_length:
                raise FieldTooLongError(name, len(value), max_length)

    @abstractmethod
    def missing_fields(self) -> list[str]:
        """Return the field names that keep this record from being complete."""

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def validate_for_save(self) -> None:
        """
        Raise IncompleteMetadataError when this mode blocks an incomplete save.
        """

        missing = self.missing_fields()
        if missing:
            raise IncompleteMetadataError(self.language.value, missing)

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language.value,
            "title": self.title,
            "title_arabic": self.title_arabic,
            "description": self.description,
            "description_arabic": self.description_arabic,
            "category": self.category,
            "category_arabic": self.category_arabic,
            "tags": list(self.tags),
            "tags_arabic": list(self.tags_arabic),
            "author": self.author,
        }


@dataclass(frozen=True)
class EnglishMetadata(MetadataRecord):
    language: ClassVar[MetadataLanguage] = MetadataLanguage.EN

    def missing_fields(self) -> list[str]:
        missing = []
        if self.title is None:
            missing.append("title")
        if self.description is None:
            missing.append("description")
        return missing


@dataclass(frozen=True)
class ArabicMetadata(MetadataRecord):
    """
    Arabic-only payload.

    The primary title/description fields count as Arabic content when the
    dedicated Arabic fields are empty. Saves are never blocked in this mode;
    completeness is still enforced when the version is submitted.
    """

    language: ClassVar[MetadataLanguage] = MetadataLanguage.AR

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.tags_arabic:
            object.__setattr__(self, "tags_arabic", self.tags)

    @property
    def effective_title(self) -> str | None:
        return self.title_arabic or self.title

    @property
    def effective_description(self) -> str | None:
        return self.description_arabic or self.description

    def missing_fields(self) -> list[str]:
        missing = []
        if self.effective_title is None:
            missing.append("title_arabic")
        if self.effective_description is None:
            missing.append("description_arabic")
        return missing

    def validate_for_save(self) -> None:
        return None


@dataclass(frozen=True)
class BilingualMetadata(MetadataRecord):
    language: ClassVar[MetadataLanguage] = MetadataLanguage.BOTH

    def missing_fields(self) -> list[str]:
        required = ("title", "title_arabic", "description", "description_arabic")
        return [name for name in required if getattr(self, name) is None]


_RECORD_BY_LANGUAGE: dict[MetadataLanguage, type[MetadataRecord]] = {
    MetadataLanguage.EN: EnglishMetadata,
    MetadataLanguage.AR: ArabicMetadata,
    MetadataLanguage.BOTH: BilingualMetadata,
}

_RECORD_FIELDS = (
    "title",
    "description",
    "title_arabic",
    "description_arabic",
    "category",
    "category_arabic",
    "tags",
    "tags_arabic",
    "author",
)


def parse_language(language: MetadataLanguage | str | None) -> MetadataLanguage:
    """Resolve a language code; a missing value defaults to English."""
    if isinstance(language, str) and not isinstance(language, MetadataLanguage):
        language = language.strip().lower()
    try:
        return MetadataLanguage(language or MetadataLanguage.EN)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in MetadataLanguage)
        raise CatalogValidationError(
            f"Unknown metadata language {language!r}. Allowed: {allowed}."
        ) from exc


def build_metadata_record(
    language: MetadataLanguage | str | None,
    fields: Mapping[str, Any],
) -> MetadataRecord:
    """
    Build the payload class matching ``language`` from loose input fields.

    Unknown keys are ignored; a missing language defaults to English.
    """

    record_cls = _RECORD_BY_LANGUAGE[parse_language(language)]
    kwargs = {name: fields[name] for name in _RECORD_FIELDS if fields.get(name) is not None}
    return record_cls(**kwargs)
