"""
db/models/dataset_metadata.py

Descriptive metadata attached to one dataset version (at most one row per
version; saves replace the row).
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dataset_version import DatasetVersion


class DatasetMetadata(Base, TimestampMixin):
    __tablename__ = "dataset_metadata"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    version_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("dataset_versions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    dataset_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("datasets.id", ondelete="CASCADE"),
        nullable=False,
    )

    language: Mapped[str] = mapped_column(String(10), nullable=False, default="en")

    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    title_arabic: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    description_arabic: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    category_arabic: Mapped[str | None] = mapped_column(String(100), nullable=True)

    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    tags_arabic: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    author: Mapped[str] = mapped_column(String(255), nullable=False, default="User")

    version: Mapped["DatasetVersion"] = relationship(
        "DatasetVersion",
        back_populates="metadata_record",
    )

    __table_args__ = (
        CheckConstraint("language IN ('en', 'ar', 'both')", name="language_allowed"),
        Index("ix_dataset_metadata_dataset_id", "dataset_id"),
    )

    def __repr__(self) -> str:
        return f"<DatasetMetadata version_id={self.version_id} language={self.language!r}>"
