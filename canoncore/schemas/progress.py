"""Progress schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ProgressUpdate(BaseModel):
    """Set the caller's progress on one viewable content item."""
    progress: int = Field(..., ge=0, le=100)


class ProgressRecordResponse(BaseModel):
    user_id: str
    content_id: str
    universe_id: str
    progress: int

    class Config:
        from_attributes = True


class ProgressSummary(BaseModel):
    """Flat rollup over every viewable item in a scope."""
    total_items: int = 0
    completed_items: int = 0
    percentage: float = 0.0
    text: str = "0%"


class ScopeProgressResponse(BaseModel):
    scope_id: str
    progress: Dict[str, int]
    summary: ProgressSummary


class NodeProgressResponse(BaseModel):
    """Progress of one node; ``calculation`` is set for organizational nodes."""
    node_id: str
    is_viewable: bool
    percentage: float
    text: str
    completed: bool
    calculation: Optional[ProgressSummary] = None
    children: List[str] = []
