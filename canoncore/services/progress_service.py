"""Progress mutations and per-scope / per-node progress reads."""

import logging
from typing import Dict

from sqlalchemy.orm import Session

from ..exceptions import ErrorCode, ValidationError
from ..models.progress import UserProgress
from ..repositories.hierarchy_repository import HierarchyRepository
from ..schemas.progress import NodeProgressResponse, ScopeProgressResponse
from . import audit_service
from .hierarchy_builder import build_hierarchy
from .hierarchy_service import to_summary
from .permission_service import require_permission
from .progress_aggregator import (
    build_progress_node,
    format_progress_text,
    is_completed,
    node_progress,
    summarize_scope,
    ProgressCalculation,
)
from .user_service import ensure_user

logger = logging.getLogger(__name__)

MIN_PROGRESS = 0
MAX_PROGRESS = 100


class ProgressService:
    """Per-user progress on viewable content.

    Public methods:
        set_progress   -- record the actor's progress (0..100) on viewable content
        get_scope      -- the actor's progress map and flat summary for a scope
        get_node       -- progress of one node (direct or derived)
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = HierarchyRepository(db)

    def set_progress(self, actor_id: str, content_id: str, progress: int) -> UserProgress:
        """Upsert the actor's progress. Out-of-range values are rejected, not clamped."""
        if isinstance(progress, bool) or not isinstance(progress, int):
            raise ValidationError("Progress must be an integer", field="progress")
        if not MIN_PROGRESS <= progress <= MAX_PROGRESS:
            raise ValidationError(
                f"Progress must be between {MIN_PROGRESS} and {MAX_PROGRESS}, got {progress}",
                field="progress",
            )

        content = self.repo.content.get_by_id(content_id)
        universe = self.repo.universes.get_by_id(content.universe_id)
        require_permission(universe, actor_id, "read", scope_id=universe.id)
        if not content.is_viewable:
            raise ValidationError(
                f"Content {content_id} is organizational; its progress is derived",
                field="content_id",
                error_code=ErrorCode.INVALID_SCOPE,
            )

        ensure_user(self.db, actor_id)
        record = self.repo.progress.upsert(actor_id, content.id, universe.id, progress)
        self.db.commit()
        self.db.refresh(record)

        logger.info("Progress for %s set to %d", content.id, progress)
        audit_service.log(
            self.db,
            user_id=actor_id,
            action="progress",
            resource_type="content",
            resource_id=content.id,
            details={"progress": progress},
        )
        return record

    def get_scope(self, actor_id: str, scope_id: str) -> ScopeProgressResponse:
        scope = self.repo.resolve(scope_id)
        require_permission(self.repo.universe_of(scope), actor_id, "read", scope_id=scope.id)

        progress_map: Dict[str, int] = self.repo.get_user_progress_map(actor_id, scope.id)
        records = self.repo.get_hierarchy_data(scope.id).content
        return ScopeProgressResponse(
            scope_id=scope.id,
            progress=progress_map,
            summary=to_summary(summarize_scope(records, progress_map)),
        )

    def get_node(self, actor_id: str, node_id: str) -> NodeProgressResponse:
        """Progress of any node, computed fresh from its subtree."""
        node = self.repo.resolve(node_id)
        universe = self.repo.universe_of(node)
        require_permission(universe, actor_id, "read", scope_id=universe.id)

        # The node's own subtree, built with the node as the single root.
        tree = build_hierarchy(self.repo.get_hierarchy_data(node.id, include_scope=True))
        progress_map = self.repo.get_user_progress_map(actor_id, node.id)
        progress_node = build_progress_node(tree, node.id, progress_map)
        percentage = node_progress(tree, node.id, progress_map)

        calculation = None
        if not progress_node.is_viewable:
            calculation = to_summary(progress_node.calculation or ProgressCalculation())
        return NodeProgressResponse(
            node_id=node.id,
            is_viewable=progress_node.is_viewable,
            percentage=percentage,
            text=format_progress_text(ProgressCalculation(percentage=percentage)),
            completed=is_completed(progress_node),
            calculation=calculation,
            children=tree.get_children(node.id),
        )
