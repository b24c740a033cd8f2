"""Minimal user rows: the host application owns accounts, CanonCore only needs an owner."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, ValidationError
from ..models.user import User

logger = logging.getLogger(__name__)

MAX_USER_ID_LENGTH = 50


def ensure_user(db: Session, user_id: str, display_name: Optional[str] = None) -> User:
    """Return the user row, creating it on first use. Flushes, never commits.

    Raises AuthenticationError for a deactivated account.
    """
    user_id = (user_id or "").strip()
    if not user_id or len(user_id) > MAX_USER_ID_LENGTH:
        raise ValidationError("Invalid user id", field="user_id")

    user = db.query(User).filter(User.user_id == user_id).first()
    if user is not None:
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user

    user = User(user_id=user_id, display_name=display_name or user_id, is_active=True)
    db.add(user)
    db.flush()
    logger.info("Created user row for %s", user_id)
    return user


def deactivate(db: Session, user_id: str) -> User:
    """Mark a user inactive. Their tokens stop working immediately."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        raise ValidationError(f"User not found: {user_id}", field="user_id")
    user.is_active = False
    db.commit()
    db.refresh(user)
    return user
