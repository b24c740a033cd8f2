"""API routes for reorder and move.

Both answer with the ``OperationResult`` body; a failed operation sets the
status code from its error code instead of raising.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.ordering import MoveRequest, OperationResult, ReorderRequest
from ..services.ordering_service import OrderingService

router = APIRouter(prefix="/api", tags=["ordering"])


def _respond(result: OperationResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))


@router.put("/scopes/{scope_id}/order", response_model=OperationResult)
def reorder_scope(
    scope_id: str,
    data: ReorderRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Rewrite the order of some or all children of a scope, atomically."""
    return _respond(OrderingService(db).reorder(auth.user_id, scope_id, data.items))


@router.put("/nodes/{node_id}/move", response_model=OperationResult)
def move_node(
    node_id: str,
    data: MoveRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Reparent a node and insert it at ``new_order`` among its new siblings."""
    return _respond(OrderingService(db).move(auth.user_id, node_id, data.new_parent_id, data.new_order))
