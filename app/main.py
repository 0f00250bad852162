from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

_POSITIVE_INT_SETTINGS = (
    "UPLOAD_MAX_BYTES",
    "PREVIEW_DEFAULT_ROWS",
    "PREVIEW_MAX_ROWS",
)


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A PostgreSQL URL must be configured (DATABASE_URL, CLOUD_DATABASE_URL
      or LOCAL_DATABASE_URL).
    - Numeric upload/preview limits, when set, must be positive integers.
    - STORAGE_MAX_RETRIES, when set, must be a non-negative integer.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    urls = [
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ]
    if not any(urls):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )
    elif not any(url.startswith(("postgres://", "postgresql")) for url in urls if url):
        errors.append("The catalog database URL must point to PostgreSQL.")

    # --- Numeric limits -------------------------------------------------
    for name in _POSITIVE_INT_SETTINGS:
        raw = os.getenv(name)
        if raw is None:
            continue
        if not raw.strip().isdigit() or int(raw) <= 0:
            errors.append(f"{name}='{raw}' must be a positive integer.")

    retries = os.getenv("STORAGE_MAX_RETRIES")
    if retries is not None and not retries.strip().isdigit():
        errors.append(f"STORAGE_MAX_RETRIES='{retries}' must be a non-negative integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every catalog table must exist; if any are missing, log a critical error
    and abort startup so migrations are run before serving traffic.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d catalog table(s) are absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema before serving requests."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Dataset Catalog API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import datasets_router, metadata_router, review_router

    application.include_router(datasets_router)
    application.include_router(metadata_router)
    application.include_router(review_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
