"""
db/models/dataset.py

Dataset model: identity, original column schema and cached statistics of the
latest uploaded file.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dataset_version import DatasetVersion


class Dataset(Base, TimestampMixin):
    """
    One published-or-pending dataset.

    columns is written once, from version 1, and never updated.

    version_count mirrors the number of stored versions and is the guard
    for compare-and-swap appends: a writer bumps it from N-1 to N in the same
    transaction that inserts version N.
    """

    __tablename__ = "datasets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Original filename of the first upload",
    )

    file_size_bytes: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Size of the latest version's file",
    )

    row_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Data rows of the latest version's file",
    )

    columns: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        comment="Header columns established by version 1",
    )

    version_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    versions: Mapped[list["DatasetVersion"]] = relationship(
        "DatasetVersion",
        back_populates="dataset",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DatasetVersion.version_number",
    )

    __table_args__ = (Index("ix_datasets_created_at", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<Dataset id={self.id} filename={self.filename!r} "
            f"version_count={self.version_count}>"
        )
