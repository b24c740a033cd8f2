"""Universe (top-level container) and Collection (sub-container) models."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.sql import func
from ..database import Base


class Universe(Base):
    """Top-level container. Its owner is the only actor allowed to mutate anything below it."""

    __tablename__ = "universes"
    __table_args__ = (
        Index("ix_universes_user_id", "user_id"),
        Index("ix_universes_is_public", "is_public"),
    )

    id = Column(String(50), primary_key=True)  # uni-{hex}
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    # Position among the owner's universes.
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Collection(Base):
    """Sub-container inside a universe; structural parent of groups."""

    __tablename__ = "collections"
    __table_args__ = (
        Index("ix_collections_universe_id", "universe_id"),
    )

    id = Column(String(50), primary_key=True)  # col-{hex}
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    universe_id = Column(String(50), ForeignKey("universes.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
