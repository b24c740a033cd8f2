"""Repository for groups and group relationship edges."""

from typing import List, Optional

from sqlalchemy import select

from ..models.group import Group, GroupRelationship
from ..models.universe import Collection
from .base import BaseRepository


class GroupRepository(BaseRepository[Group]):
    model_class = Group
    kind = "group"
    id_prefix = "grp"

    def create(
        self,
        collection: Collection,
        name: str,
        description: str = "",
        item_type: str = "collection",
    ) -> Group:
        return self._add(Group(
            id=self.new_id(),
            collection_id=collection.id,
            user_id=collection.user_id,
            name=name,
            description=description,
            item_type=item_type,
            sort_order=self._next_order(Group.collection_id == collection.id),
        ))

    def get_by_collections(self, collection_ids: List[str]) -> List[Group]:
        if not collection_ids:
            return []
        return (
            self._base_query()
            .filter(Group.collection_id.in_(collection_ids))
            .order_by(Group.sort_order, Group.id)
            .all()
        )

    def get_edge_children(self, parent_id: str) -> List[Group]:
        child_ids = select(GroupRelationship.child_group_id).where(
            GroupRelationship.parent_group_id == parent_id
        )
        return (
            self._base_query()
            .filter(Group.id.in_(child_ids))
            .order_by(Group.sort_order, Group.id)
            .all()
        )

    # --- Edges ---

    def add_edge(self, parent_id: str, child_id: str) -> GroupRelationship:
        edge = GroupRelationship(parent_group_id=parent_id, child_group_id=child_id)
        self.db.add(edge)
        self.db.flush()
        return edge

    def find_edge(self, parent_id: str, child_id: str) -> Optional[GroupRelationship]:
        return (
            self.db.query(GroupRelationship)
            .filter(
                GroupRelationship.parent_group_id == parent_id,
                GroupRelationship.child_group_id == child_id,
            )
            .first()
        )

    def get_parent_ids(self, child_id: str) -> List[str]:
        rows = (
            self.db.query(GroupRelationship.parent_group_id)
            .filter(GroupRelationship.child_group_id == child_id)
            .order_by(GroupRelationship.id)
            .all()
        )
        return [row[0] for row in rows]

    def get_child_ids(self, parent_id: str) -> List[str]:
        rows = (
            self.db.query(GroupRelationship.child_group_id)
            .filter(GroupRelationship.parent_group_id == parent_id)
            .order_by(GroupRelationship.id)
            .all()
        )
        return [row[0] for row in rows]

    def get_edges_for_parents(self, parent_ids: List[str]) -> List[GroupRelationship]:
        if not parent_ids:
            return []
        return (
            self.db.query(GroupRelationship)
            .filter(GroupRelationship.parent_group_id.in_(parent_ids))
            .order_by(GroupRelationship.id)
            .all()
        )

    def delete_parent_edges(self, child_id: str) -> int:
        return (
            self.db.query(GroupRelationship)
            .filter(GroupRelationship.child_group_id == child_id)
            .delete(synchronize_session=False)
        )

    def delete_edges_touching(self, group_ids: List[str]) -> int:
        if not group_ids:
            return 0
        return (
            self.db.query(GroupRelationship)
            .filter(
                GroupRelationship.parent_group_id.in_(group_ids)
                | GroupRelationship.child_group_id.in_(group_ids)
            )
            .delete(synchronize_session=False)
        )
