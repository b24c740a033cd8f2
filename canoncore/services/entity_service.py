"""Node lifecycle: create the four node kinds, link relationship edges, cascade delete."""

import logging
from datetime import date
from typing import List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..exceptions import CircularHierarchyError, ErrorCode, ValidationError
from ..models.content import Content
from ..models.group import Group
from ..models.universe import Collection, Universe
from ..repositories.hierarchy_repository import HierarchyRepository, ResolvedNode
from ..schemas.entity import DeleteResponse
from . import audit_service
from .hierarchy_builder import NodeKind
from .permission_service import require_permission
from .user_service import ensure_user

logger = logging.getLogger(__name__)


class EntityService:
    """Business logic for creating, linking and deleting nodes.

    New nodes go last among their siblings (order = sibling count).

    Public methods:
        create_universe   -- new universe owned by the actor
        create_collection -- new collection in a universe
        create_group      -- new group in a collection
        create_content    -- new content in a universe, optionally inside a group
        link_groups       -- add a group relationship edge
        link_content      -- add a content relationship edge
        delete_node       -- delete a node and everything below it
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = HierarchyRepository(db)

    # --- create ---

    def create_universe(self, actor_id: str, name: str, description: str = "", is_public: bool = False) -> Universe:
        ensure_user(self.db, actor_id)
        universe = self.repo.universes.create(actor_id, name, description, is_public)
        return self._commit_created(actor_id, NodeKind.UNIVERSE, universe)

    def create_collection(self, actor_id: str, universe_id: str, name: str, description: str = "") -> Collection:
        universe = self.repo.universes.get_by_id(universe_id)
        require_permission(universe, actor_id, "edit")
        collection = self.repo.collections.create(universe, name, description)
        return self._commit_created(actor_id, NodeKind.COLLECTION, collection)

    def create_group(
        self,
        actor_id: str,
        collection_id: str,
        name: str,
        description: str = "",
        item_type: str = "collection",
    ) -> Group:
        collection = self.repo.collections.get_by_id(collection_id)
        universe = self.repo.universes.get_by_id(collection.universe_id)
        require_permission(universe, actor_id, "edit")
        group = self.repo.groups.create(collection, name, description, item_type)
        return self._commit_created(actor_id, NodeKind.GROUP, group)

    def create_content(
        self,
        actor_id: str,
        universe_id: str,
        name: str,
        group_id: Optional[str] = None,
        description: str = "",
        is_viewable: bool = True,
        item_type: str = "text",
        release_date: Optional[date] = None,
    ) -> Content:
        universe = self.repo.universes.get_by_id(universe_id)
        require_permission(universe, actor_id, "edit")
        if group_id is not None:
            group = self.repo.groups.get_by_id(group_id)
            if self.repo.universe_of(ResolvedNode(NodeKind.GROUP, group)).id != universe.id:
                raise ValidationError(
                    f"Group {group_id} is not in universe {universe.id}",
                    field="group_id",
                    error_code=ErrorCode.INVALID_SCOPE,
                )

        content = self.repo.content.create(
            universe,
            name,
            group_id=group_id,
            description=description,
            is_viewable=is_viewable,
            item_type=item_type,
            release_date=release_date,
        )
        return self._commit_created(actor_id, NodeKind.CONTENT, content)

    def _commit_created(self, actor_id: str, kind: NodeKind, entity):
        self.db.commit()
        self.db.refresh(entity)
        logger.info("Created %s %s", kind.value, entity.id)
        audit_service.log(
            self.db,
            user_id=actor_id,
            action="create",
            resource_type=kind.value,
            resource_id=entity.id,
            details={"name": entity.name, "order": entity.sort_order},
        )
        return entity

    # --- link ---

    def link_groups(self, actor_id: str, parent_id: str, child_id: str) -> Tuple[str, str]:
        """Place *child_id* under *parent_id* through a group edge. Idempotent."""
        parent, child = self._check_link(actor_id, NodeKind.GROUP, parent_id, child_id)
        groups = self.repo.groups
        if groups.find_edge(parent.id, child.id) is not None:
            return parent.id, child.id

        first_parent = not groups.get_parent_ids(child.id)
        groups.add_edge(parent.id, child.id)
        if first_parent and child.entity.collection_id != parent.entity.collection_id:
            for member in [child.entity] + groups.get_many(sorted(self.repo.edge_descendant_ids(child.id, NodeKind.GROUP))):
                member.collection_id = parent.entity.collection_id
        return self._commit_link(actor_id, NodeKind.GROUP, parent.id, child.id)

    def link_content(self, actor_id: str, parent_id: str, child_id: str) -> Tuple[str, str]:
        """Place *child_id* under non-viewable *parent_id* through a content edge. Idempotent."""
        parent, child = self._check_link(actor_id, NodeKind.CONTENT, parent_id, child_id)
        if parent.entity.is_viewable:
            raise ValidationError(
                "Viewable content cannot hold children",
                field="parent_id",
                error_code=ErrorCode.INVALID_SCOPE,
            )
        content = self.repo.content
        if content.find_edge(parent.id, child.id) is not None:
            return parent.id, child.id

        first_parent = not content.get_parent_ids(child.id)
        content.add_edge(parent.id, child.id)
        if first_parent and child.entity.group_id != parent.entity.group_id:
            for member in [child.entity] + content.get_many(sorted(self.repo.edge_descendant_ids(child.id, NodeKind.CONTENT))):
                member.group_id = parent.entity.group_id
        return self._commit_link(actor_id, NodeKind.CONTENT, parent.id, child.id)

    def _check_link(self, actor_id: str, kind: NodeKind, parent_id: str, child_id: str) -> Tuple[ResolvedNode, ResolvedNode]:
        repo = self.repo.groups if kind == NodeKind.GROUP else self.repo.content
        parent = ResolvedNode(kind, repo.get_by_id(parent_id))
        child = ResolvedNode(kind, repo.get_by_id(child_id))

        universe = self.repo.universe_of(parent)
        require_permission(universe, actor_id, "edit")
        if self.repo.universe_of(child).id != universe.id:
            raise ValidationError(
                "Both ends of a relationship must be in the same universe",
                field="child_id",
                error_code=ErrorCode.INVALID_SCOPE,
            )
        if self.repo.is_edge_descendant(child.id, parent.id, kind):
            raise CircularHierarchyError(child.id, parent.id)
        return parent, child

    def _commit_link(self, actor_id: str, kind: NodeKind, parent_id: str, child_id: str) -> Tuple[str, str]:
        self.db.commit()
        logger.info("Linked %s %s under %s", kind.value, child_id, parent_id)
        audit_service.log(
            self.db,
            user_id=actor_id,
            action="link",
            resource_type=kind.value,
            resource_id=child_id,
            details={"parent_id": parent_id},
        )
        return parent_id, child_id

    # --- delete ---

    def delete_node(self, actor_id: str, node_id: str) -> DeleteResponse:
        """Delete a node, its structural and edge descendants, their edges and progress."""
        node = self.repo.resolve(node_id)
        universe = self.repo.universe_of(node)
        require_permission(universe, actor_id, "delete")

        collection_ids, group_ids, content_ids = self._cascade_ids(node)

        self.repo.progress.delete_for_content(sorted(content_ids))
        self.repo.content.delete_edges_touching(sorted(content_ids))
        self.repo.groups.delete_edges_touching(sorted(group_ids))
        self._delete_rows(Content, content_ids)
        self._delete_rows(Group, group_ids)
        self._delete_rows(Collection, collection_ids)
        if node.kind == NodeKind.UNIVERSE:
            self._delete_rows(Universe, {node.id})

        self.db.commit()
        self.db.expire_all()

        result = DeleteResponse(
            deleted_id=node.id,
            collections=len(collection_ids),
            groups=len(group_ids),
            content=len(content_ids),
        )
        logger.info(
            "Deleted %s %s (%d collection(s), %d group(s), %d content item(s))",
            node.kind.value, node.id, result.collections, result.groups, result.content,
        )
        audit_service.log(
            self.db,
            user_id=actor_id,
            action="delete",
            resource_type=node.kind.value,
            resource_id=node.id,
            details=result.model_dump(),
        )
        return result

    def _cascade_ids(self, node: ResolvedNode) -> Tuple[Set[str], Set[str], Set[str]]:
        collection_ids: Set[str] = set()
        group_ids: Set[str] = set()
        content_ids: Set[str] = set()

        if node.kind == NodeKind.UNIVERSE:
            collection_ids = {c.id for c in self.repo.collections.get_by_universe(node.id)}
            group_ids = {g.id for g in self.repo.groups.get_by_collections(sorted(collection_ids))}
            content_ids = {c.id for c in self.repo.content.get_by_universe(node.id)}
            return collection_ids, group_ids, content_ids

        if node.kind == NodeKind.COLLECTION:
            collection_ids = {node.id}
            roots: List[str] = [g.id for g in self.repo.groups.get_by_collections([node.id])]
        elif node.kind == NodeKind.GROUP:
            roots = [node.id]
        else:
            roots = []
            content_ids = {node.id}

        for group_id in roots:
            group_ids.add(group_id)
            group_ids |= self.repo.edge_descendant_ids(group_id, NodeKind.GROUP)
        content_ids |= {c.id for c in self.repo.content.get_by_groups(sorted(group_ids))}

        for content_id in list(content_ids):
            content_ids |= self.repo.edge_descendant_ids(content_id, NodeKind.CONTENT)
        return collection_ids, group_ids, content_ids

    def _delete_rows(self, model, ids: Set[str]) -> int:
        if not ids:
            return 0
        return (
            self.db.query(model)
            .filter(model.id.in_(sorted(ids)))
            .delete(synchronize_session=False)
        )
