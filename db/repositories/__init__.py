"""
Repository layer exports.
"""

from db.repositories.catalog_repository import SQLAlchemyCatalogStore
from db.repositories.storage import LocalFileStorage, sanitize_key

__all__ = [
    "SQLAlchemyCatalogStore",
    "LocalFileStorage",
    "sanitize_key",
]
