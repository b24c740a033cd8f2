"""Reorder and move schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..exceptions import CanonException, ErrorCode

# Status code answered for a failed OperationResult, keyed by its code.
_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR.value: 400,
    ErrorCode.INVALID_SCOPE.value: 400,
    ErrorCode.CIRCULAR_HIERARCHY.value: 400,
    ErrorCode.UNAUTHORIZED.value: 401,
    ErrorCode.ACCESS_DENIED.value: 403,
    ErrorCode.NODE_NOT_FOUND.value: 404,
    ErrorCode.DATABASE_ERROR.value: 500,
    ErrorCode.INTERNAL_ERROR.value: 500,
}


class ReorderItem(BaseModel):
    """New position of one sibling."""
    id: str = Field(..., min_length=1, max_length=50)
    order: int


class ReorderRequest(BaseModel):
    """A batch of siblings sharing one scope.

    Only the shape is checked here; empty batches, repeated ids and negative
    orders come back as a failed OperationResult from the service.
    """
    items: List[ReorderItem]


class MoveRequest(BaseModel):
    """Reparent one node. ``new_parent_id`` None = back to its structural parent."""
    new_parent_id: Optional[str] = Field(default=None, max_length=50)
    new_order: int = 0


class OperationResult(BaseModel):
    """Outcome of a reorder or move. Failures are reported, never raised."""
    success: bool
    error: Optional[str] = None
    code: Optional[str] = None
    details: Dict[str, Any] = {}
    data: Dict[str, Any] = {}
    rebuild_required: bool = False

    @classmethod
    def ok(cls, **data: Any) -> "OperationResult":
        return cls(success=True, data=data, rebuild_required=True)

    @classmethod
    def failure(cls, exc: CanonException) -> "OperationResult":
        return cls(
            success=False,
            error=exc.message,
            code=exc.error_code.value,
            details=exc.details,
        )

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return _STATUS_BY_CODE.get(self.code or "", 500)
