"""API routes."""

from .entities import router as entities_router
from .hierarchy import router as hierarchy_router
from .ordering import router as ordering_router
from .progress import router as progress_router

__all__ = [
    "entities_router",
    "hierarchy_router",
    "ordering_router",
    "progress_router",
]
