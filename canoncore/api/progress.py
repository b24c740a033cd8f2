"""API routes for user progress. Progress always belongs to the caller."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth, require_auth
from ..database import get_db
from ..schemas.progress import (
    NodeProgressResponse,
    ProgressRecordResponse,
    ProgressUpdate,
    ScopeProgressResponse,
)
from ..services.progress_service import ProgressService

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.put("/{content_id}", response_model=ProgressRecordResponse)
def set_progress(
    content_id: str,
    data: ProgressUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Set the caller's progress (0..100) on a viewable content item."""
    return ProgressService(db).set_progress(auth.user_id, content_id, data.progress)


@router.get("/scopes/{scope_id}", response_model=ScopeProgressResponse)
def get_scope_progress(
    scope_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    """Progress map for every content item in a scope plus the flat summary."""
    return ProgressService(db).get_scope(auth.user_id, scope_id)


@router.get("/nodes/{node_id}", response_model=NodeProgressResponse)
def get_node_progress(
    node_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(optional_auth),
):
    return ProgressService(db).get_node(auth.user_id, node_id)
