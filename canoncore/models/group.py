"""Group model and the Group↔Group relationship edge."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class Group(Base):
    """Organizational container inside a collection; structural parent of content."""

    __tablename__ = "content_groups"
    __table_args__ = (
        Index("ix_content_groups_collection_id", "collection_id"),
    )

    id = Column(String(50), primary_key=True)  # grp-{hex}
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    collection_id = Column(String(50), ForeignKey("collections.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    item_type = Column(String(50), nullable=False, default="collection")
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class GroupRelationship(Base):
    """Free-form parent→child link between two groups.

    Independent of the collection FK: a child group listed here is shown
    under its parent group instead of at its collection's root.
    """

    __tablename__ = "group_relationships"
    __table_args__ = (
        UniqueConstraint("parent_group_id", "child_group_id", name="uq_group_relationships_pair"),
        Index("ix_group_relationships_child", "child_group_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_group_id = Column(String(50), ForeignKey("content_groups.id", ondelete="CASCADE"), nullable=False)
    child_group_id = Column(String(50), ForeignKey("content_groups.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
