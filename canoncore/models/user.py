"""User and AuditLog models.

Accounts are managed by the host application; CanonCore only needs a row to
own universes and progress records. AuditLog records every state-changing
operation for accountability.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """Account that owns universes and carries progress."""

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="Default User")
    email = Column(String(255), unique=True, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuditLog(Base):
    """Immutable record of a state-changing operation.

    Fields:
        action        : create, delete, reorder, move, link, progress
        resource_type : universe, collection, group, content, scope, progress
        resource_id   : ID of the affected node or scope
        details       : JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), nullable=True)  # no FK: actors may not have a users row
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
