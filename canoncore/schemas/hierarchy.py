"""Tree and scope schemas."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from .progress import ProgressSummary


class ScopeChild(BaseModel):
    """One direct child of a scope, as stored."""
    id: str
    kind: str
    name: str
    description: str = ""
    order: int
    is_viewable: bool = False
    item_type: Optional[str] = None


class EdgeResponse(BaseModel):
    parent_id: str
    child_id: str


class TreeNodeResponse(BaseModel):
    """Nested tree node. Each node appears once, under its chosen parent."""
    id: str
    kind: str
    name: str
    description: str = ""
    order: int
    is_folder: bool
    is_viewable: bool = False
    item_type: Optional[str] = None
    release_date: Optional[date] = None
    progress: float = 0.0
    progress_text: str = "0%"
    children: List["TreeNodeResponse"] = []


class TreeResponse(BaseModel):
    scope_id: str
    scope_kind: str
    nodes: List[TreeNodeResponse]
    summary: ProgressSummary
    warnings: List[str] = []


TreeNodeResponse.model_rebuild()
