"""Read side of the hierarchy: children, edges and the progress-decorated tree."""

import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from ..repositories.hierarchy_repository import HierarchyRepository, ResolvedNode
from ..schemas.hierarchy import EdgeResponse, ScopeChild, TreeNodeResponse, TreeResponse
from ..schemas.progress import ProgressSummary
from .hierarchy_builder import TreeData, build_hierarchy
from .ordering_service import OrderingService
from .permission_service import require_permission
from .progress_aggregator import (
    ProgressCalculation,
    content_progress,
    build_progress_tree,
    format_progress_text,
    index_progress_tree,
    summarize_scope,
)
from .tree_surface import TreeSurface

logger = logging.getLogger(__name__)


def to_summary(calculation: ProgressCalculation) -> ProgressSummary:
    return ProgressSummary(
        total_items=calculation.total_items,
        completed_items=calculation.completed_items,
        percentage=calculation.percentage,
        text=format_progress_text(calculation),
    )


class HierarchyService:
    """Business logic for reading trees.

    Every call re-queries the store and rebuilds; nothing is cached between
    calls, so a read after a reorder or move always reflects it.

    Public methods:
        get_children  -- ordered direct children of a scope
        get_edges     -- relationship edges below a scope
        load_tree     -- fetch + build the tree for a scope (no permission check)
        get_tree_view -- nested tree with per-node progress and a scope summary
        open_surface  -- interactive TreeSurface for a scope
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = HierarchyRepository(db)

    def authorize_read(self, actor_id: str, scope_id: str) -> ResolvedNode:
        scope = self.repo.resolve(scope_id)
        require_permission(self.repo.universe_of(scope), actor_id, "read", scope_id=scope.id)
        return scope

    def get_children(self, actor_id: str, scope_id: str) -> List[ScopeChild]:
        scope = self.authorize_read(actor_id, scope_id)
        return [
            ScopeChild(
                id=child.id,
                kind=child.kind.value,
                name=child.entity.name,
                description=child.entity.description or "",
                order=child.entity.sort_order or 0,
                is_viewable=bool(getattr(child.entity, "is_viewable", False)),
                item_type=getattr(child.entity, "item_type", None),
            )
            for child in self.repo.get_scope_children(scope)
        ]

    def get_edges(self, actor_id: str, scope_id: str) -> List[EdgeResponse]:
        self.authorize_read(actor_id, scope_id)
        return [
            EdgeResponse(parent_id=edge.parent_id, child_id=edge.child_id)
            for edge in self.repo.get_relationship_edges(scope_id)
        ]

    def load_tree(self, scope_id: str) -> TreeData:
        tree = build_hierarchy(self.repo.get_hierarchy_data(scope_id))
        logger.debug("Built tree for %s: %d node(s), %d root(s)", scope_id, len(tree.items), len(tree.roots))
        return tree

    def get_tree_view(self, actor_id: str, scope_id: str) -> TreeResponse:
        """Nested tree for *scope_id*, decorated with the actor's progress."""
        scope = self.authorize_read(actor_id, scope_id)
        tree = self.load_tree(scope.id)
        progress_map = self.repo.get_user_progress_map(actor_id, scope.id)
        progress_index = index_progress_tree(build_progress_tree(tree, progress_map))

        def decorate(node_id: str) -> Dict:
            node = progress_index.get(node_id)
            percentage = content_progress(node) if node is not None else 0.0
            return {
                "progress": percentage,
                "progress_text": format_progress_text(ProgressCalculation(percentage=percentage)),
            }

        surface = TreeSurface(lambda: tree, engine=None, actor_id=actor_id, scope_id=scope.id)
        return TreeResponse(
            scope_id=scope.id,
            scope_kind=scope.kind.value,
            nodes=[TreeNodeResponse(**node) for node in surface.nested(decorate)],
            summary=to_summary(summarize_scope(tree.items.values(), progress_map)),
            warnings=tree.warnings,
        )

    def open_surface(self, actor_id: str, scope_id: str, engine=None) -> TreeSurface:
        """Tree surface wired to a fresh loader and the ordering service."""
        scope = self.authorize_read(actor_id, scope_id)
        return TreeSurface(
            loader=lambda: self.load_tree(scope.id),
            engine=engine or OrderingService(self.db),
            actor_id=actor_id,
            scope_id=scope.id,
        )
