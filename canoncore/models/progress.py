"""Per-user progress on viewable content."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class UserProgress(Base):
    """One row per (user, content); ``progress`` is a percentage in [0, 100]."""

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="uq_user_progress_user_content"),
        Index("ix_user_progress_universe_id", "universe_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    content_id = Column(String(50), ForeignKey("content.id", ondelete="CASCADE"), nullable=False)
    universe_id = Column(String(50), ForeignKey("universes.id", ondelete="CASCADE"), nullable=False)
    progress = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
