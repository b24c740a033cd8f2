"""Authentication boundary exposed as FastAPI dependencies.

Public interface:
    ``require_auth``  returns AuthContext or raises 401.
    ``optional_auth`` returns AuthContext, the anonymous reader when no valid token is sent.

Ownership (does this actor own the universe?) is decided further in, by the
services. This module only answers "who is calling".

When ``settings.auth_enabled`` is False the actor id is read from the
``settings.dev_user_header`` header so several users can be simulated
locally; it falls back to ``anonymous``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .logging_config import actor_id_var
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ANONYMOUS_USER_ID = "anonymous"

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """The resolved caller. ``user_id`` is the actor id handed to services."""

    user_id: str
    authenticated: bool = True


_ANONYMOUS = AuthContext(user_id=ANONYMOUS_USER_ID, authenticated=False)


def _dev_context(request: Request) -> AuthContext:
    user_id = (request.headers.get(settings.dev_user_header) or "").strip() or ANONYMOUS_USER_ID
    actor_id_var.set(user_id)
    return AuthContext(user_id=user_id, authenticated=False)


def require_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token naming an active user."""
    if not settings.auth_enabled:
        return _dev_context(request)

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload.sub, db)


def optional_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Validate a token if present, else fall back to the anonymous reader.

    Permission checks still run on the anonymous actor, so only public
    universes are readable without a token. Never raises (unlike require_auth).
    """
    if not settings.auth_enabled:
        return _dev_context(request)

    if credentials is None:
        return _ANONYMOUS

    payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        return _ANONYMOUS
    try:
        return _load_auth_context(payload.sub, db)
    except AuthenticationError:
        return _ANONYMOUS


def _load_auth_context(user_id: str, db: Session) -> AuthContext:
    from ..models.user import User

    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    actor_id_var.set(user.user_id)
    return AuthContext(user_id=user.user_id)
