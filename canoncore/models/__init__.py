"""Database models."""

from .user import User, AuditLog
from .universe import Universe, Collection
from .group import Group, GroupRelationship
from .content import Content, ContentRelationship, ItemType
from .progress import UserProgress

__all__ = [
    "User", "AuditLog",
    "Universe", "Collection",
    "Group", "GroupRelationship",
    "Content", "ContentRelationship", "ItemType",
    "UserProgress",
]
