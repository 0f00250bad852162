"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.dataset import Dataset
from db.models.dataset_metadata import DatasetMetadata
from db.models.dataset_version import DatasetVersion

__all__ = [
    "Dataset",
    "DatasetVersion",
    "DatasetMetadata",
]
