"""Base repository with shared lookup and sibling-count helpers.

Subclasses set ``model_class`` and ``kind``; the base provides get-by-id,
the "next order in scope" rule used on creation, and id generation.
"""

import uuid
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import NodeNotFoundError

ModelT = TypeVar("ModelT", bound=Base)

# 12 hex chars = 48 bits, plenty for per-deployment uniqueness.
NODE_ID_HEX_LENGTH = 12


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for the node tables.

    Class variables to set in subclasses:
        model_class: The SQLAlchemy model (e.g., Group)
        kind:        Human-readable kind used in errors ("group")
        id_prefix:   Prefix of generated ids ("grp")
    """

    model_class: Type[ModelT]
    kind: str = "node"
    id_prefix: str = "node"

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises NodeNotFoundError if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise NodeNotFoundError(entity_id, self.kind)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def get_many(self, entity_ids: List[str]) -> List[ModelT]:
        if not entity_ids:
            return []
        return self._base_query().filter(self.model_class.id.in_(entity_ids)).all()

    def new_id(self) -> str:
        return f"{self.id_prefix}-{uuid.uuid4().hex[:NODE_ID_HEX_LENGTH]}"

    def _next_order(self, *criteria) -> int:
        """New nodes go last: order = number of existing siblings."""
        return self._base_query().filter(*criteria).count()

    def _add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        self.db.refresh(entity)
        return entity
