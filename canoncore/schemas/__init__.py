"""Pydantic schemas for API validation."""

from .entity import (
    UniverseCreate,
    CollectionCreate,
    GroupCreate,
    ContentCreate,
    RelationshipCreate,
    UniverseResponse,
    CollectionResponse,
    GroupResponse,
    ContentResponse,
    RelationshipResponse,
    DeleteResponse,
)
from .hierarchy import ScopeChild, EdgeResponse, TreeNodeResponse, TreeResponse
from .ordering import ReorderItem, ReorderRequest, MoveRequest, OperationResult
from .progress import (
    ProgressUpdate,
    ProgressRecordResponse,
    ProgressSummary,
    ScopeProgressResponse,
    NodeProgressResponse,
)

__all__ = [
    "UniverseCreate",
    "CollectionCreate",
    "GroupCreate",
    "ContentCreate",
    "RelationshipCreate",
    "UniverseResponse",
    "CollectionResponse",
    "GroupResponse",
    "ContentResponse",
    "RelationshipResponse",
    "DeleteResponse",
    "ScopeChild",
    "EdgeResponse",
    "TreeNodeResponse",
    "TreeResponse",
    "ReorderItem",
    "ReorderRequest",
    "MoveRequest",
    "OperationResult",
    "ProgressUpdate",
    "ProgressRecordResponse",
    "ProgressSummary",
    "ScopeProgressResponse",
    "NodeProgressResponse",
]
