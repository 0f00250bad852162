"""
File store backends for uploaded dataset files.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

from catalog.errors import CatalogPersistenceError, CatalogValidationError, StorageUnavailableError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _sanitize_segment(segment: str) -> str:
    safe = _UNSAFE_CHARS.sub("_", segment.strip())
    if not safe or set(safe) == {"."}:
        raise CatalogValidationError(f"Invalid storage key segment: {segment!r}")
    return safe


def sanitize_key(key: str) -> PurePosixPath:
    """
    Turn a caller key like ``<dataset>/v1/sales.csv`` into a safe relative path.

    Every segment is reduced to ``[A-Za-z0-9._-]``; ``.``/``..`` segments and
    empty keys are rejected.
    """

    parts = [part for part in key.replace("\\", "/").split("/") if part]
    if not parts:
        raise CatalogValidationError("Storage key must not be empty.")
    return PurePosixPath(*(_sanitize_segment(part) for part in parts))


class LocalFileStorage:
    """
    Local filesystem file store.

    Writes go to a temporary sibling first and are renamed into place, so a
    reader never sees a partially written file. Any OS-level failure surfaces
    as StorageUnavailableError, which the publishing service retries.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def put(self, content: bytes, key: str) -> str:
        relative_path = sanitize_key(key)
        absolute_path = self._root_dir / relative_path

        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise StorageUnavailableError(
                f"Failed to write {relative_path} to storage: {exc}"
            ) from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    logger.warning("Could not remove temporary file %s", tmp_path)

        logger.debug("Stored %d bytes at %s", len(content), relative_path)
        return relative_path.as_posix()

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise CatalogPersistenceError(
                f"Stored file is missing: {path}", file_path=path
            ) from exc
        except OSError as exc:
            raise StorageUnavailableError(f"Failed to read {path} from storage: {exc}") from exc

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise StorageUnavailableError(
                f"Failed to delete {path} from storage: {exc}"
            ) from exc

    def _resolve(self, path: str) -> Path:
        return self._root_dir / sanitize_key(path)
