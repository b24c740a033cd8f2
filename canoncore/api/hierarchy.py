"""API routes for reading scopes and trees."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth
from ..database import get_db
from ..schemas.hierarchy import EdgeResponse, ScopeChild, TreeResponse
from ..services.hierarchy_service import HierarchyService

router = APIRouter(prefix="/api/scopes", tags=["hierarchy"])


@router.get("/{scope_id}/children", response_model=List[ScopeChild])
def get_children(
    scope_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Direct children of a scope, ordered by (order, id)."""
    return HierarchyService(db).get_children(auth.user_id, scope_id)


@router.get("/{scope_id}/edges", response_model=List[EdgeResponse])
def get_edges(
    scope_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return HierarchyService(db).get_edges(auth.user_id, scope_id)


@router.get("/{scope_id}/tree", response_model=TreeResponse)
def get_tree(
    scope_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Full tree below a scope with the caller's progress on every node.

    Built fresh on every call. Skipped edges are listed in ``warnings``.
    """
    return HierarchyService(db).get_tree_view(auth.user_id, scope_id)
