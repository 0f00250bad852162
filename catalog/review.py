"""
catalog/review.py

Review workflow for a single dataset version.

    draft --submit--> review --approve--> published
                             --reject---> rejected

published and rejected are terminal; a new revision is a new version appended
to the chain. Every allowed move is listed in _TRANSITIONS and nowhere else.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from catalog.errors import (
    CommentsRequiredError,
    InvalidTransitionError,
    MetadataIncompleteError,
)
from catalog.locks import KeyedLockRegistry
from catalog.metadata import MetadataRecord
from catalog.types import DatasetVersion, VersionStatus, utcnow

logger = logging.getLogger(__name__)

MetadataLookup = Callable[[DatasetVersion], MetadataRecord | None]


class ReviewAction:
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


_TARGET_BY_ACTION: dict[str, VersionStatus] = {
    ReviewAction.SUBMIT: VersionStatus.REVIEW,
    ReviewAction.APPROVE: VersionStatus.PUBLISHED,
    ReviewAction.REJECT: VersionStatus.REJECTED,
}

_TRANSITIONS: dict[tuple[VersionStatus, str], VersionStatus] = {
    (VersionStatus.DRAFT, ReviewAction.SUBMIT): VersionStatus.REVIEW,
    (VersionStatus.REVIEW, ReviewAction.APPROVE): VersionStatus.PUBLISHED,
    (VersionStatus.REVIEW, ReviewAction.REJECT): VersionStatus.REJECTED,
}


def next_status(current: VersionStatus, action: str) -> VersionStatus:
    """
    Resolve the status reached by ``action`` from ``current``.

    Raises InvalidTransitionError naming both states when the move is illegal.
    """

    target = _TRANSITIONS.get((current, action))
    if target is None:
        requested = _TARGET_BY_ACTION.get(action)
        raise InvalidTransitionError(
            current.value,
            requested.value if requested is not None else action,
        )
    return target


def _blank(text: str | None) -> bool:
    return text is None or not text.strip()


class ReviewWorkflow:
    """
    Applies review transitions to versions, one writer per version at a time.
    """

    def __init__(self, *, locks: KeyedLockRegistry | None = None) -> None:
        self._locks = locks or KeyedLockRegistry()

    def submit(
        self,
        version: DatasetVersion,
        metadata_lookup: MetadataLookup,
        comments: str | None = None,
    ) -> DatasetVersion:
        with self._locks.hold(version.id):
            target = next_status(version.status, ReviewAction.SUBMIT)

            record = metadata_lookup(version)
            if record is None:
                raise MetadataIncompleteError(
                    "Metadata is required before submitting for review.",
                    version_number=version.version_number,
                )
            missing = record.missing_fields()
            if missing:
                raise MetadataIncompleteError(
                    f"Metadata for language '{record.language.value}' is missing: "
                    f"{', '.join(missing)}.",
                    version_number=version.version_number,
                    missing_fields=missing,
                )

            return self._apply(version, target, comments)

    def approve(
        self,
        version: DatasetVersion,
        comments: str | None = None,
    ) -> DatasetVersion:
        with self._locks.hold(version.id):
            target = next_status(version.status, ReviewAction.APPROVE)
            return self._apply(version, target, comments)

    def reject(self, version: DatasetVersion, comments: str | None) -> DatasetVersion:
        if _blank(comments):
            raise CommentsRequiredError()
        with self._locks.hold(version.id):
            target = next_status(version.status, ReviewAction.REJECT)
            return self._apply(version, target, comments)

    def _apply(
        self,
        version: DatasetVersion,
        target: VersionStatus,
        comments: str | None,
    ) -> DatasetVersion:
        previous = version.status
        version.status = target
        if not _blank(comments):
            version.comments = comments.strip()
        version.updated_at = utcnow()
        logger.info(
            "Version transition dataset_id=%s version=%d %s -> %s",
            version.dataset_id,
            version.version_number,
            previous.value,
            target.value,
        )
        return version
