"""
app/api/routers package marker.
"""

from app.api.routers.datasets import router as datasets_router
from app.api.routers.metadata import router as metadata_router
from app.api.routers.review import router as review_router

__all__ = [
    "datasets_router",
    "metadata_router",
    "review_router",
]
