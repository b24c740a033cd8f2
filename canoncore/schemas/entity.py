"""Create schemas for universes, collections, groups and content."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models.content import ItemType


class _NamedCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str = ""

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v


class UniverseCreate(_NamedCreate):
    is_public: bool = False


class CollectionCreate(_NamedCreate):
    pass


class GroupCreate(_NamedCreate):
    item_type: ItemType = ItemType.COLLECTION


class ContentCreate(_NamedCreate):
    group_id: Optional[str] = Field(default=None, max_length=50)
    is_viewable: bool = True
    item_type: ItemType = ItemType.TEXT
    release_date: Optional[date] = None


class RelationshipCreate(BaseModel):
    """Link an existing node under the parent named in the path."""
    child_id: str = Field(..., min_length=1, max_length=50)


class NodeResponse(BaseModel):
    """Any node as returned after creation."""
    id: str
    name: str
    description: str = ""
    user_id: str
    sort_order: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UniverseResponse(NodeResponse):
    is_public: bool


class CollectionResponse(NodeResponse):
    universe_id: str


class GroupResponse(NodeResponse):
    collection_id: str
    item_type: str


class ContentResponse(NodeResponse):
    universe_id: str
    group_id: Optional[str] = None
    is_viewable: bool
    item_type: str
    release_date: Optional[date] = None


class RelationshipResponse(BaseModel):
    parent_id: str
    child_id: str


class DeleteResponse(BaseModel):
    """Ids removed by a cascading delete, grouped by kind."""
    deleted_id: str
    collections: int = 0
    groups: int = 0
    content: int = 0
