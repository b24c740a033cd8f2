"""API routes for creating, linking and deleting nodes.

The owner of anything created here is the authenticated actor; it is never
read from the request body.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.entity import (
    CollectionCreate,
    CollectionResponse,
    ContentCreate,
    ContentResponse,
    DeleteResponse,
    GroupCreate,
    GroupResponse,
    RelationshipCreate,
    RelationshipResponse,
    UniverseCreate,
    UniverseResponse,
)
from ..services.entity_service import EntityService

router = APIRouter(prefix="/api", tags=["entities"])


@router.post("/universes", response_model=UniverseResponse, status_code=201)
def create_universe(
    data: UniverseCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create a universe owned by the caller."""
    return EntityService(db).create_universe(auth.user_id, data.name, data.description, data.is_public)


@router.post("/universes/{universe_id}/collections", response_model=CollectionResponse, status_code=201)
def create_collection(
    universe_id: str,
    data: CollectionCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create a collection at the end of the universe's children."""
    return EntityService(db).create_collection(auth.user_id, universe_id, data.name, data.description)


@router.post("/collections/{collection_id}/groups", response_model=GroupResponse, status_code=201)
def create_group(
    collection_id: str,
    data: GroupCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return EntityService(db).create_group(
        auth.user_id, collection_id, data.name, data.description, data.item_type.value,
    )


@router.post("/universes/{universe_id}/content", response_model=ContentResponse, status_code=201)
def create_content(
    universe_id: str,
    data: ContentCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create content directly under the universe, or inside ``group_id``."""
    return EntityService(db).create_content(
        auth.user_id,
        universe_id,
        data.name,
        group_id=data.group_id,
        description=data.description,
        is_viewable=data.is_viewable,
        item_type=data.item_type.value,
        release_date=data.release_date,
    )


@router.post("/groups/{parent_id}/children", response_model=RelationshipResponse, status_code=201)
def link_group(
    parent_id: str,
    data: RelationshipCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Add a group relationship edge. Cycles are rejected."""
    parent, child = EntityService(db).link_groups(auth.user_id, parent_id, data.child_id)
    return RelationshipResponse(parent_id=parent, child_id=child)


@router.post("/content/{parent_id}/children", response_model=RelationshipResponse, status_code=201)
def link_content(
    parent_id: str,
    data: RelationshipCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Add a content relationship edge under a non-viewable content item."""
    parent, child = EntityService(db).link_content(auth.user_id, parent_id, data.child_id)
    return RelationshipResponse(parent_id=parent, child_id=child)


@router.delete("/nodes/{node_id}", response_model=DeleteResponse)
def delete_node(
    node_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Delete a node and everything below it, with their edges and progress."""
    return EntityService(db).delete_node(auth.user_id, node_id)
