"""
db/models/dataset_version.py

One stored file submission for a dataset and its review status.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dataset import Dataset
    from db.models.dataset_metadata import DatasetMetadata


class DatasetVersion(Base, TimestampMixin):
    __tablename__ = "dataset_versions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    dataset_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("datasets.id", ondelete="CASCADE"),
        nullable=False,
    )

    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    file_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        comment="Path returned by the file store",
    )

    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    row_count: Mapped[int] = mapped_column(Integer, nullable=False)

    file_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="draft",
        comment="draft → review → published | rejected",
    )

    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Relationships ──────────────────────────────────────────────────────────

    dataset: Mapped["Dataset"] = relationship("Dataset", back_populates="versions")

    metadata_record: Mapped["DatasetMetadata | None"] = relationship(
        "DatasetMetadata",
        back_populates="version",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "dataset_id",
            "version_number",
            name="uq_dataset_versions_dataset_id_version_number",
        ),
        CheckConstraint(
            "status IN ('draft', 'review', 'published', 'rejected')",
            name="status_allowed",
        ),
        CheckConstraint("version_number >= 1", name="version_number_positive"),
        Index("ix_dataset_versions_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<DatasetVersion dataset_id={self.dataset_id} "
            f"version={self.version_number} status={self.status!r}>"
        )
