"""Permission checking for universes.

The owner of a universe may read and mutate everything below it; anyone
may read a public universe. Every service calls these functions instead of
comparing user ids itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..exceptions import AuthorizationError

if TYPE_CHECKING:
    from ..models.universe import Universe

# Action → whether a non-owner may perform it on a public universe.
_PUBLIC_ACTIONS: dict[str, bool] = {
    "read": True,
    "edit": False,
    "delete": False,
}


def check_permission(universe: Universe, actor_id: str, action: str) -> bool:
    """Check whether *actor_id* may perform *action* inside *universe*.

    Args:
        universe: The universe the target node lives in.
        actor_id: The acting user id from the auth context.
        action: One of ``"read"``, ``"edit"``, ``"delete"``.
    """
    if action not in _PUBLIC_ACTIONS:
        return False
    if universe.user_id == actor_id:
        return True
    return bool(universe.is_public) and _PUBLIC_ACTIONS[action]


def require_permission(universe: Universe, actor_id: str, action: str, scope_id: str | None = None) -> None:
    """Raise AuthorizationError unless :func:`check_permission` allows the action."""
    if not check_permission(universe, actor_id, action):
        raise AuthorizationError(scope_id=scope_id or universe.id)
