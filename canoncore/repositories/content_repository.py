"""Repository for content items and content relationship edges."""

from datetime import date
from typing import List, Optional

from sqlalchemy import select

from ..models.content import Content, ContentRelationship
from ..models.universe import Universe
from .base import BaseRepository


class ContentRepository(BaseRepository[Content]):
    model_class = Content
    kind = "content"
    id_prefix = "cnt"

    def create(
        self,
        universe: Universe,
        name: str,
        group_id: Optional[str] = None,
        description: str = "",
        is_viewable: bool = False,
        item_type: str = "text",
        release_date: Optional[date] = None,
    ) -> Content:
        siblings = Content.group_id == group_id if group_id else (
            (Content.universe_id == universe.id) & Content.group_id.is_(None)
        )
        return self._add(Content(
            id=self.new_id(),
            universe_id=universe.id,
            group_id=group_id,
            user_id=universe.user_id,
            name=name,
            description=description,
            is_viewable=is_viewable,
            item_type=item_type,
            release_date=release_date,
            sort_order=self._next_order(siblings),
        ))

    def get_by_universe(self, universe_id: str) -> List[Content]:
        return (
            self._base_query()
            .filter(Content.universe_id == universe_id)
            .order_by(Content.sort_order, Content.id)
            .all()
        )

    def get_by_groups(self, group_ids: List[str]) -> List[Content]:
        if not group_ids:
            return []
        return (
            self._base_query()
            .filter(Content.group_id.in_(group_ids))
            .order_by(Content.sort_order, Content.id)
            .all()
        )

    def get_structural_children(self, universe_id: Optional[str], group_id: Optional[str]) -> List[Content]:
        """Content directly under a group (or the universe when *group_id* is None).

        Relationship edges do not take content out of its group.
        """
        query = self._base_query()
        if group_id is None:
            query = query.filter(Content.universe_id == universe_id, Content.group_id.is_(None))
        else:
            query = query.filter(Content.group_id == group_id)
        return query.order_by(Content.sort_order, Content.id).all()

    def get_edge_children(self, parent_id: str) -> List[Content]:
        child_ids = select(ContentRelationship.child_content_id).where(
            ContentRelationship.parent_content_id == parent_id
        )
        return (
            self._base_query()
            .filter(Content.id.in_(child_ids))
            .order_by(Content.sort_order, Content.id)
            .all()
        )

    # --- Edges ---

    def add_edge(self, parent_id: str, child_id: str) -> ContentRelationship:
        edge = ContentRelationship(parent_content_id=parent_id, child_content_id=child_id)
        self.db.add(edge)
        self.db.flush()
        return edge

    def find_edge(self, parent_id: str, child_id: str) -> Optional[ContentRelationship]:
        return (
            self.db.query(ContentRelationship)
            .filter(
                ContentRelationship.parent_content_id == parent_id,
                ContentRelationship.child_content_id == child_id,
            )
            .first()
        )

    def get_parent_ids(self, child_id: str) -> List[str]:
        rows = (
            self.db.query(ContentRelationship.parent_content_id)
            .filter(ContentRelationship.child_content_id == child_id)
            .order_by(ContentRelationship.id)
            .all()
        )
        return [row[0] for row in rows]

    def get_child_ids(self, parent_id: str) -> List[str]:
        rows = (
            self.db.query(ContentRelationship.child_content_id)
            .filter(ContentRelationship.parent_content_id == parent_id)
            .order_by(ContentRelationship.id)
            .all()
        )
        return [row[0] for row in rows]

    def get_edges_for_parents(self, parent_ids: List[str]) -> List[ContentRelationship]:
        if not parent_ids:
            return []
        return (
            self.db.query(ContentRelationship)
            .filter(ContentRelationship.parent_content_id.in_(parent_ids))
            .order_by(ContentRelationship.id)
            .all()
        )

    def delete_parent_edges(self, child_id: str) -> int:
        return (
            self.db.query(ContentRelationship)
            .filter(ContentRelationship.child_content_id == child_id)
            .delete(synchronize_session=False)
        )

    def delete_edges_touching(self, content_ids: List[str]) -> int:
        if not content_ids:
            return 0
        return (
            self.db.query(ContentRelationship)
            .filter(
                ContentRelationship.parent_content_id.in_(content_ids)
                | ContentRelationship.child_content_id.in_(content_ids)
            )
            .delete(synchronize_session=False)
        )
