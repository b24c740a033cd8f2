"""Data access repositories."""

from .base import BaseRepository
from .universe_repository import UniverseRepository, CollectionRepository
from .group_repository import GroupRepository
from .content_repository import ContentRepository
from .progress_repository import ProgressRepository
from .hierarchy_repository import HierarchyRepository

__all__ = [
    "BaseRepository",
    "UniverseRepository",
    "CollectionRepository",
    "GroupRepository",
    "ContentRepository",
    "ProgressRepository",
    "HierarchyRepository",
]
