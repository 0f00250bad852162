"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class UploadSettings:
    """
    Limits applied to uploaded dataset files.
    """

    max_bytes: int = 10 * 1024 * 1024
    storage_dir: str = "data/uploads"


@dataclass(frozen=True)
class StorageSettings:
    """
    Retry behaviour for file store round trips.
    """

    max_retries: int = 1
    retry_backoff_seconds: float = 0.2


@dataclass(frozen=True)
class PreviewSettings:
    default_rows: int = 10
    max_rows: int = 20


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload settings from environment variables.
    """

    return UploadSettings(
        max_bytes=max(1, _get_int_env("UPLOAD_MAX_BYTES", 10 * 1024 * 1024)),
        storage_dir=_get_str_env("UPLOAD_STORAGE_DIR", "data/uploads"),
    )


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """
    Return cached file store retry settings from environment variables.
    """

    return StorageSettings(
        max_retries=max(0, _get_int_env("STORAGE_MAX_RETRIES", 1)),
        retry_backoff_seconds=max(0.0, _get_float_env("STORAGE_RETRY_BACKOFF_SECONDS", 0.2)),
    )


@lru_cache(maxsize=1)
def get_preview_settings() -> PreviewSettings:
    max_rows = max(1, _get_int_env("PREVIEW_MAX_ROWS", 20))
    return PreviewSettings(
        default_rows=min(max_rows, max(1, _get_int_env("PREVIEW_DEFAULT_ROWS", 10))),
        max_rows=max_rows,
    )
