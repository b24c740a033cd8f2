"""Scope-level queries across all node tables.

A *scope* is any node id. This repository answers the questions the tree
needs about a scope, always from fresh queries:

    resolve                 -- which table holds this id
    universe_of             -- the universe a node belongs to
    get_by_parent_scope     -- ordered children of a scope
    get_hierarchy_data      -- every record + edge below a scope
    get_relationship_edges  -- the edges below a scope
    get_user_progress_map   -- a user's progress for content below a scope
    is_edge_descendant      -- cycle check for relationship edges
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Union

from sqlalchemy.orm import Session

from ..exceptions import NodeNotFoundError, ValidationError, ErrorCode
from ..models.content import Content
from ..models.group import Group
from ..models.universe import Universe, Collection
from ..services.hierarchy_builder import EdgeRecord, HierarchyData, NodeKind, NodeRecord
from .content_repository import ContentRepository
from .group_repository import GroupRepository
from .progress_repository import ProgressRepository
from .universe_repository import CollectionRepository, UniverseRepository

NodeEntity = Union[Universe, Collection, Group, Content]


@dataclass(frozen=True)
class ResolvedNode:
    kind: NodeKind
    entity: NodeEntity

    @property
    def id(self) -> str:
        return self.entity.id


def sibling_sort_key(entity: NodeEntity):
    return (entity.sort_order or 0, entity.id)


def to_record(kind: NodeKind, entity: NodeEntity) -> NodeRecord:
    """Reduce an ORM row to the builder's NodeRecord."""
    if kind == NodeKind.COLLECTION:
        parent_id = entity.universe_id
    elif kind == NodeKind.GROUP:
        parent_id = entity.collection_id
    elif kind == NodeKind.CONTENT:
        parent_id = entity.group_id or entity.universe_id
    else:
        parent_id = None

    return NodeRecord(
        id=entity.id,
        kind=kind,
        name=entity.name,
        order=entity.sort_order or 0,
        parent_id=parent_id,
        is_viewable=bool(getattr(entity, "is_viewable", False)),
        item_type=getattr(entity, "item_type", None),
        description=entity.description or "",
        release_date=getattr(entity, "release_date", None),
    )


class HierarchyRepository:
    """Read side of the entity store, keyed by scope id."""

    def __init__(self, db: Session):
        self.db = db
        self.universes = UniverseRepository(db)
        self.collections = CollectionRepository(db)
        self.groups = GroupRepository(db)
        self.content = ContentRepository(db)
        self.progress = ProgressRepository(db)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve_optional(self, node_id: str) -> Optional[ResolvedNode]:
        for kind, repo in (
            (NodeKind.UNIVERSE, self.universes),
            (NodeKind.COLLECTION, self.collections),
            (NodeKind.GROUP, self.groups),
            (NodeKind.CONTENT, self.content),
        ):
            entity = repo.get_by_id_optional(node_id)
            if entity is not None:
                return ResolvedNode(kind=kind, entity=entity)
        return None

    def resolve(self, node_id: str) -> ResolvedNode:
        node = self.resolve_optional(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def universe_of(self, node: ResolvedNode) -> Universe:
        if node.kind == NodeKind.UNIVERSE:
            return node.entity
        if node.kind == NodeKind.GROUP:
            collection = self.collections.get_by_id(node.entity.collection_id)
            return self.universes.get_by_id(collection.universe_id)
        return self.universes.get_by_id(node.entity.universe_id)

    # ------------------------------------------------------------------
    # Children of one scope
    # ------------------------------------------------------------------

    def get_by_parent_scope(self, scope_id: str) -> List[NodeEntity]:
        """Ordered children of a scope, by (order, id)."""
        return [child.entity for child in self.get_scope_children(self.resolve(scope_id))]

    def get_scope_children(self, scope: ResolvedNode) -> List[ResolvedNode]:
        """Structural children plus relationship-edge children of *scope*."""
        if scope.kind == NodeKind.UNIVERSE:
            children = [ResolvedNode(NodeKind.COLLECTION, c) for c in self.collections.get_by_universe(scope.id)]
            children += [
                ResolvedNode(NodeKind.CONTENT, c)
                for c in self.content.get_structural_children(scope.id, group_id=None)
            ]
        elif scope.kind == NodeKind.COLLECTION:
            children = [ResolvedNode(NodeKind.GROUP, g) for g in self.groups.get_by_collections([scope.id])]
        elif scope.kind == NodeKind.GROUP:
            children = [ResolvedNode(NodeKind.GROUP, g) for g in self.groups.get_edge_children(scope.id)]
            children += [
                ResolvedNode(NodeKind.CONTENT, c)
                for c in self.content.get_structural_children(None, group_id=scope.id)
            ]
        else:
            children = [ResolvedNode(NodeKind.CONTENT, c) for c in self.content.get_edge_children(scope.id)]

        children.sort(key=lambda child: sibling_sort_key(child.entity))
        return children

    # ------------------------------------------------------------------
    # Everything below one scope
    # ------------------------------------------------------------------

    def get_hierarchy_data(self, scope_id: str, include_scope: bool = False) -> HierarchyData:
        """All records and edges below a universe, collection, group or content scope.

        By default the scope node itself is left out, so its children become
        roots. With *include_scope* it is the single root and keeps its own
        relationship edges.
        """
        scope = self.resolve(scope_id)

        if scope.kind == NodeKind.UNIVERSE:
            collections = self.collections.get_by_universe(scope.id)
            groups = self.groups.get_by_collections([c.id for c in collections])
            content = self.content.get_by_universe(scope.id)
        elif scope.kind == NodeKind.COLLECTION:
            collections = []
            groups = self.groups.get_by_collections([scope.id])
            content = self.content.get_by_groups([g.id for g in groups])
        elif scope.kind == NodeKind.GROUP:
            collections = []
            groups = self.groups.get_many(sorted(self._edge_closure(scope.id, self.groups)))
            groups.sort(key=sibling_sort_key)
            content = self.content.get_by_groups([scope.id] + [g.id for g in groups])
        else:
            collections = []
            groups = []
            content = self.content.get_many(sorted(self._edge_closure(scope.id, self.content)))
            content.sort(key=sibling_sort_key)

        group_edges = [
            EdgeRecord(parent_id=e.parent_group_id, child_id=e.child_group_id)
            for e in self.groups.get_edges_for_parents([g.id for g in groups] + self._scope_parent(scope, NodeKind.GROUP))
            if include_scope or e.parent_group_id != scope.id
        ]
        content_edges = [
            EdgeRecord(parent_id=e.parent_content_id, child_id=e.child_content_id)
            for e in self.content.get_edges_for_parents([c.id for c in content] + self._scope_parent(scope, NodeKind.CONTENT))
            if include_scope or e.parent_content_id != scope.id
        ]

        return HierarchyData(
            scope=to_record(scope.kind, scope.entity) if include_scope else None,
            collections=[to_record(NodeKind.COLLECTION, c) for c in collections],
            groups=[to_record(NodeKind.GROUP, g) for g in groups],
            content=[to_record(NodeKind.CONTENT, c) for c in content],
            group_edges=group_edges,
            content_edges=content_edges,
        )

    def get_relationship_edges(self, scope_id: str) -> List[EdgeRecord]:
        data = self.get_hierarchy_data(scope_id)
        return data.edges()

    def get_user_progress_map(self, user_id: str, scope_id: str) -> Dict[str, int]:
        scope = self.resolve(scope_id)
        if scope.kind == NodeKind.UNIVERSE:
            return self.progress.map_for_universe(user_id, scope.id)

        content_ids = [record.id for record in self.get_hierarchy_data(scope_id).content]
        if scope.kind == NodeKind.CONTENT:
            content_ids.append(scope.id)
        return self.progress.map_for_content(user_id, content_ids)

    # ------------------------------------------------------------------
    # Edge graph helpers
    # ------------------------------------------------------------------

    def is_edge_descendant(self, ancestor_id: str, candidate_id: str, kind: NodeKind) -> bool:
        """True if *candidate_id* is *ancestor_id* or sits below it through relationship edges."""
        if ancestor_id == candidate_id:
            return True
        return candidate_id in self.edge_descendant_ids(ancestor_id, kind)

    def edge_descendant_ids(self, root_id: str, kind: NodeKind) -> Set[str]:
        repo = self.groups if kind == NodeKind.GROUP else self.content
        return self._edge_closure(root_id, repo)

    @staticmethod
    def _edge_closure(root_id: str, repo) -> Set[str]:
        found: Set[str] = set()
        pending = repo.get_child_ids(root_id)
        while pending:
            current = pending.pop()
            if current in found or current == root_id:
                continue
            found.add(current)
            pending.extend(repo.get_child_ids(current))
        return found

    @staticmethod
    def _scope_parent(scope: ResolvedNode, kind: NodeKind) -> List[str]:
        # Edges hanging directly off the scope are fetched too; they are dropped
        # again unless the scope itself is part of the tree.
        return [scope.id] if scope.kind == kind else []


def validate_node_id(node_id: str, field: str = "id") -> str:
    """Reject ids that cannot possibly exist."""
    if not isinstance(node_id, str) or not node_id.strip() or len(node_id) > 50:
        raise ValidationError(f"Malformed id: {node_id!r}", field=field, error_code=ErrorCode.VALIDATION_ERROR)
    return node_id
