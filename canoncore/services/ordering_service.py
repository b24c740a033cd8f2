"""Reorder and move: the only writers of sibling order and parentage.

Both operations validate everything (ids, existence, ownership, scope,
cycles) before the first write, run in one transaction, and report the
outcome as an ``OperationResult``. Nothing raises past this service; a
database failure rolls the whole batch back.

A successful result always carries ``rebuild_required``: callers re-fetch
and rebuild the tree instead of patching it.
"""

import logging
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import (
    CanonException,
    CircularHierarchyError,
    DatabaseError,
    ErrorCode,
    NodeNotFoundError,
    ValidationError,
)
from ..repositories.hierarchy_repository import HierarchyRepository, ResolvedNode, validate_node_id
from ..schemas.ordering import OperationResult, ReorderItem
from . import audit_service
from .hierarchy_builder import NodeKind
from .permission_service import require_permission

logger = logging.getLogger(__name__)


class OrderingService:
    """Sibling reorder and node reparenting.

    Public methods:
        reorder -- rewrite ``sort_order`` for a batch of siblings of one scope
        move    -- reparent one node and insert it at a position among its new siblings
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = HierarchyRepository(db)

    # ------------------------------------------------------------------
    # Reorder
    # ------------------------------------------------------------------

    def reorder(self, actor_id: str, scope_id: str, items: List[ReorderItem]) -> OperationResult:
        """Apply ``{id, order}`` pairs to children of *scope_id*, all or nothing."""
        return self._run(
            actor_id,
            action="reorder",
            resource_id=scope_id,
            operation=lambda: self._reorder(actor_id, scope_id, items),
        )

    def _reorder(self, actor_id: str, scope_id: str, items: List[ReorderItem]) -> Dict:
        validate_node_id(scope_id, field="scope_id")
        if not items:
            raise ValidationError("Reorder needs at least one item", field="items")

        seen = set()
        for item in items:
            validate_node_id(item.id, field="items.id")
            if not isinstance(item.order, int) or item.order < 0:
                raise ValidationError(f"Invalid order for {item.id}: {item.order}", field="items.order")
            if item.id in seen:
                raise ValidationError(f"Duplicate id in reorder batch: {item.id}", field="items.id")
            seen.add(item.id)

        scope = self.repo.resolve(scope_id)
        require_permission(self.repo.universe_of(scope), actor_id, "edit", scope_id=scope.id)

        children = {child.id: child for child in self.repo.get_scope_children(scope)}
        for item in items:
            if item.id in children:
                continue
            if self.repo.resolve_optional(item.id) is None:
                raise NodeNotFoundError(item.id)
            raise ValidationError(
                f"{item.id} is not a child of {scope.id}",
                field="items.id",
                error_code=ErrorCode.INVALID_SCOPE,
            )

        for item in items:
            children[item.id].entity.sort_order = item.order
        self.db.flush()

        logger.info("Reordered %d item(s) under %s", len(items), scope.id)
        return {
            "scope_id": scope.id,
            "items": [{"id": item.id, "order": item.order} for item in items],
        }

    # ------------------------------------------------------------------
    # Move
    # ------------------------------------------------------------------

    def move(
        self,
        actor_id: str,
        node_id: str,
        new_parent_id: Optional[str],
        new_order: int = 0,
    ) -> OperationResult:
        """Reparent *node_id* under *new_parent_id* at position *new_order*.

        ``new_parent_id`` None returns the node to its structural parent
        (its collection for a group, its group or universe for content).
        """
        return self._run(
            actor_id,
            action="move",
            resource_id=node_id,
            operation=lambda: self._move(actor_id, node_id, new_parent_id, new_order),
        )

    def _move(self, actor_id: str, node_id: str, new_parent_id: Optional[str], new_order: int) -> Dict:
        validate_node_id(node_id, field="node_id")
        if new_parent_id is not None:
            validate_node_id(new_parent_id, field="new_parent_id")
        if not isinstance(new_order, int) or new_order < 0:
            raise ValidationError(f"Invalid order: {new_order}", field="new_order")

        node = self.repo.resolve(node_id)
        if node.kind == NodeKind.UNIVERSE:
            raise ValidationError("A universe has no parent", field="node_id", error_code=ErrorCode.INVALID_SCOPE)

        universe = self.repo.universe_of(node)
        require_permission(universe, actor_id, "edit", scope_id=universe.id)

        parent: Optional[ResolvedNode] = None
        if new_parent_id is not None:
            if new_parent_id == node.id:
                raise CircularHierarchyError(node.id, new_parent_id)
            parent = self.repo.resolve(new_parent_id)
            if self.repo.universe_of(parent).id != universe.id:
                raise ValidationError(
                    "Parent must be in the same universe",
                    field="new_parent_id",
                    error_code=ErrorCode.INVALID_SCOPE,
                )

        source = self._current_parent(node)

        if node.kind == NodeKind.COLLECTION:
            destination = self._reparent_collection(node, parent, universe_id=universe.id)
        elif node.kind == NodeKind.GROUP:
            destination = self._reparent_group(node, parent)
        else:
            destination = self._reparent_content(node, parent)
        self.db.flush()

        if source.id != destination.id:
            self._renumber(source, exclude_id=node.id)
        position = self._insert_at(destination, node, new_order)
        self.db.flush()

        logger.info(
            "Moved %s %s from %s to %s at %d",
            node.kind.value, node.id, source.id, destination.id, position,
        )
        return {
            "node_id": node.id,
            "previous_parent_id": source.id,
            "parent_id": destination.id,
            "order": position,
        }

    def _reparent_collection(self, node: ResolvedNode, parent: Optional[ResolvedNode], universe_id: str) -> ResolvedNode:
        if parent is not None and parent.id != universe_id:
            raise ValidationError(
                "A collection can only be positioned inside its universe",
                field="new_parent_id",
                error_code=ErrorCode.INVALID_SCOPE,
            )
        return self.repo.resolve(universe_id)

    def _reparent_group(self, node: ResolvedNode, parent: Optional[ResolvedNode]) -> ResolvedNode:
        group = node.entity
        groups = self.repo.groups

        if parent is None:
            groups.delete_parent_edges(group.id)
            return self.repo.resolve(group.collection_id)

        if parent.kind == NodeKind.COLLECTION:
            groups.delete_parent_edges(group.id)
            self._set_group_collection(group, parent.id)
            return parent

        if parent.kind == NodeKind.GROUP:
            if self.repo.is_edge_descendant(group.id, parent.id, NodeKind.GROUP):
                raise CircularHierarchyError(group.id, parent.id)
            groups.delete_parent_edges(group.id)
            groups.add_edge(parent.id, group.id)
            self._set_group_collection(group, parent.entity.collection_id)
            return parent

        raise ValidationError(
            f"A group cannot be placed under a {parent.kind.value}",
            field="new_parent_id",
            error_code=ErrorCode.INVALID_SCOPE,
        )

    def _reparent_content(self, node: ResolvedNode, parent: Optional[ResolvedNode]) -> ResolvedNode:
        content = node.entity
        repo = self.repo.content

        if parent is None:
            repo.delete_parent_edges(content.id)
            return self.repo.resolve(content.group_id or content.universe_id)

        if parent.kind == NodeKind.GROUP:
            repo.delete_parent_edges(content.id)
            self._set_content_group(content, parent.id)
            return parent

        if parent.kind == NodeKind.UNIVERSE:
            repo.delete_parent_edges(content.id)
            self._set_content_group(content, None)
            return parent

        if parent.kind == NodeKind.CONTENT:
            if parent.entity.is_viewable:
                raise ValidationError(
                    "Viewable content cannot hold children",
                    field="new_parent_id",
                    error_code=ErrorCode.INVALID_SCOPE,
                )
            if self.repo.is_edge_descendant(content.id, parent.id, NodeKind.CONTENT):
                raise CircularHierarchyError(content.id, parent.id)
            repo.delete_parent_edges(content.id)
            repo.add_edge(parent.id, content.id)
            self._set_content_group(content, parent.entity.group_id)
            return parent

        raise ValidationError(
            "Content cannot be placed under a collection",
            field="new_parent_id",
            error_code=ErrorCode.INVALID_SCOPE,
        )

    def _set_group_collection(self, group, collection_id: str) -> None:
        # Edge descendants travel with the group so the collection tree stays whole.
        if group.collection_id == collection_id:
            return
        moved = [group] + self.repo.groups.get_many(sorted(self.repo.edge_descendant_ids(group.id, NodeKind.GROUP)))
        for member in moved:
            member.collection_id = collection_id

    def _set_content_group(self, content, group_id: Optional[str]) -> None:
        if content.group_id == group_id:
            return
        moved = [content] + self.repo.content.get_many(sorted(self.repo.edge_descendant_ids(content.id, NodeKind.CONTENT)))
        for member in moved:
            member.group_id = group_id

    def _current_parent(self, node: ResolvedNode) -> ResolvedNode:
        """The parent the node is rendered under right now (first edge wins)."""
        if node.kind == NodeKind.COLLECTION:
            return self.repo.resolve(node.entity.universe_id)
        if node.kind == NodeKind.GROUP:
            edge_parents = self.repo.groups.get_parent_ids(node.id)
            return self.repo.resolve(edge_parents[0] if edge_parents else node.entity.collection_id)
        edge_parents = self.repo.content.get_parent_ids(node.id)
        if edge_parents:
            return self.repo.resolve(edge_parents[0])
        return self.repo.resolve(node.entity.group_id or node.entity.universe_id)

    def _renumber(self, parent: ResolvedNode, exclude_id: str) -> None:
        siblings = [child for child in self.repo.get_scope_children(parent) if child.id != exclude_id]
        for index, sibling in enumerate(siblings):
            sibling.entity.sort_order = index

    def _insert_at(self, parent: ResolvedNode, node: ResolvedNode, new_order: int) -> int:
        siblings = [child for child in self.repo.get_scope_children(parent) if child.id != node.id]
        position = min(new_order, len(siblings))
        siblings.insert(position, node)
        for index, sibling in enumerate(siblings):
            sibling.entity.sort_order = index
        return position

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    def _run(self, actor_id: str, action: str, resource_id: str, operation: Callable[[], Dict]) -> OperationResult:
        try:
            data = operation()
            self.db.commit()
        except CanonException as e:
            self.db.rollback()
            logger.warning("%s rejected for %s: %s", action.capitalize(), resource_id, e.message,
                           extra={"error_code": e.error_code.value})
            return OperationResult.failure(e)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("%s failed for %s", action.capitalize(), resource_id, exc_info=True)
            return OperationResult.failure(DatabaseError(f"{action.capitalize()} failed", e))

        audit_service.log(
            self.db,
            user_id=actor_id,
            action=action,
            resource_type="scope" if action == "reorder" else "node",
            resource_id=resource_id,
            details=data,
        )
        return OperationResult.ok(**data)
