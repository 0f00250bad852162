"""Metadata suggestion collaborators.

A suggester proposes candidate title/description/tags/category strings for a
dataset. Its output is untrusted: callers hand the chosen candidate to
build_metadata_record exactly like manually entered fields.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

from catalog.types import MetadataLanguage, SchemaResult

_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Finance", ("price", "cost", "revenue", "sales", "profit")),
    ("Healthcare", ("patient", "diagnosis", "hospital", "health")),
    ("Education", ("student", "school", "grade", "education")),
    ("People", ("name", "email", "phone")),
    ("Time Series", ("date", "time", "year")),
    ("Geography", ("country", "city", "location", "region")),
    ("Products", ("product", "item", "inventory")),
)


def guess_category(columns: Sequence[str]) -> str:
    """Pick a category from keywords found in the column names."""
    joined = " ".join(columns).lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in joined for keyword in keywords):
            return category
    return "General"


@dataclass(frozen=True)
class MetadataSuggestion:
    """One candidate metadata payload."""

    title: str
    description: str
    category: str
    tags: tuple[str, ...] = field(default_factory=tuple)
    title_arabic: str | None = None
    description_arabic: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "title_arabic": self.title_arabic,
            "description_arabic": self.description_arabic,
        }


class BaseMetadataSuggester(ABC):
    """Abstract base for metadata suggestion sources."""

    @abstractmethod
    def suggest(
        self,
        schema: SchemaResult,
        sample_rows: Sequence[Sequence[str]],
        language: MetadataLanguage,
    ) -> list[MetadataSuggestion]:
        """Return candidate metadata for a dataset.

        Args:
            schema: Filename, columns and row count of the current file.
            sample_rows: A few data rows from the current file, possibly empty.
            language: Language mode the contributor is editing in.

        Returns:
            Zero or more candidates, best first.
        """


class HeuristicMetadataSuggester(BaseMetadataSuggester):
    """Deterministic suggester built from the filename and column names.

    Used when no model-backed suggester is configured, and in tests.
    """

    def suggest(
        self,
        schema: SchemaResult,
        sample_rows: Sequence[Sequence[str]],
        language: MetadataLanguage,
    ) -> list[MetadataSuggestion]:
        stem = PurePath(schema.filename).stem or "dataset"
        columns = list(schema.columns)
        category = guess_category(columns)
        column_list = ", ".join(columns)
        leading = ", ".join(columns[:3]) + (" and more" if len(columns) > 3 else "")
        with_arabic = language in (MetadataLanguage.AR, MetadataLanguage.BOTH)

        summary = MetadataSuggestion(
            title=f"{stem} Dataset",
            description=(
                f"This dataset contains information about {stem.lower()} with the "
                f"following columns: {column_list}. It has {schema.row_count} records."
            ),
            category=category,
            tags=tuple([*columns[:5], stem.lower()]),
            title_arabic=f"مجموعة بيانات {stem}" if with_arabic else None,
            description_arabic=(
                f"تحتوي مجموعة البيانات هذه على معلومات حول {stem.lower()} مع الأعمدة "
                f"التالية: {column_list}. تحتوي على {schema.row_count} سجل."
                if with_arabic
                else None
            ),
        )
        analysis = MetadataSuggestion(
            title=f"{stem} Analysis Dataset",
            description=(
                f"A dataset of {schema.row_count} records with {len(columns)} variables "
                f"including {leading}. Suitable for research and statistical analysis."
            ),
            category=category,
            tags=("research", "statistics", "analysis", stem.lower()),
            title_arabic=f"مجموعة بيانات تحليل {stem}" if with_arabic else None,
            description_arabic=(
                f"مجموعة بيانات تحتوي على {schema.row_count} سجل مع {len(columns)} "
                "متغير، مناسبة للبحث والتحليل الإحصائي."
                if with_arabic
                else None
            ),
        )
        insights = MetadataSuggestion(
            title=f"{category} Insights: {stem}",
            description=(
                f"Insights into {category.lower()} trends with {schema.row_count} entries "
                f"and key fields such as {', '.join(columns[:4])}."
                + (f" Example row: {', '.join(sample_rows[0])}." if sample_rows else "")
            ),
            category=category,
            tags=(category.lower(), "insights", "trends"),
            title_arabic=f"رؤى {category}: {stem}" if with_arabic else None,
            description_arabic=(
                f"رؤى حول اتجاهات {category.lower()} مع {schema.row_count} إدخال."
                if with_arabic
                else None
            ),
        )
        return [summary, analysis, insights]
