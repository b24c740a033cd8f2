"""Content model and the Content↔Content relationship edge."""

from enum import Enum

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.sql import func
from ..database import Base


class ItemType(str, Enum):
    """What a content item (or group) represents."""
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    CHARACTER = "character"
    LOCATION = "location"
    ITEM = "item"
    EVENT = "event"
    COLLECTION = "collection"


class Content(Base):
    """Content inside a universe.

    Viewable content is a leaf that carries user progress. Non-viewable
    content is organizational and derives its progress from descendants.
    ``group_id`` is NULL for content living directly under the universe.
    """

    __tablename__ = "content"
    __table_args__ = (
        Index("ix_content_universe_id", "universe_id"),
        Index("ix_content_group_id", "group_id"),
        Index("ix_content_is_viewable", "is_viewable"),
    )

    id = Column(String(50), primary_key=True)  # cnt-{hex}
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    universe_id = Column(String(50), ForeignKey("universes.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(String(50), ForeignKey("content_groups.id", ondelete="CASCADE"), nullable=True)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    is_viewable = Column(Boolean, nullable=False, default=False)
    item_type = Column(String(50), nullable=False, default=ItemType.TEXT.value)
    release_date = Column(Date, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ContentRelationship(Base):
    """Free-form parent→child link between two content items."""

    __tablename__ = "content_relationships"
    __table_args__ = (
        UniqueConstraint("parent_content_id", "child_content_id", name="uq_content_relationships_pair"),
        Index("ix_content_relationships_child", "child_content_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_content_id = Column(String(50), ForeignKey("content.id", ondelete="CASCADE"), nullable=False)
    child_content_id = Column(String(50), ForeignKey("content.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
