"""Turn flat node records and relationship edges into an ordered tree.

Pure functions and plain dataclasses, no database access. The repository
layer produces ``HierarchyData``; ``build_hierarchy`` produces ``TreeData``,
which the progress aggregator and the tree surface consume.

Structural nesting (collection → group → content foreign keys) and
free-form relationship edges are normalized into one edge list before the
tree is assembled:

* every explicit relationship edge is kept, in the order given, unless it is
  dangling (an end is not in the loaded set), a self-loop or a repeat;
* every node whose structural parent was loaded gets an implicit edge from
  it, whether or not a relationship edge also claims the node.

A node's children are therefore the union of its structural children and
its relationship-edge children, and a node reachable from two parents is
listed under both. ``parent_of`` records the first parent encountered,
relationship edges first; rendering uses it to show the node once.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    UNIVERSE = "universe"
    COLLECTION = "collection"
    GROUP = "group"
    CONTENT = "content"


# Kinds that structurally contain children are folders even when empty.
_STRUCTURAL_FOLDERS = frozenset({NodeKind.UNIVERSE, NodeKind.COLLECTION, NodeKind.GROUP})


@dataclass(frozen=True)
class NodeRecord:
    """One row of any entity table, reduced to what the tree needs."""
    id: str
    kind: NodeKind
    name: str
    order: int = 0
    parent_id: Optional[str] = None  # structural FK parent
    is_viewable: bool = False
    item_type: Optional[str] = None
    description: str = ""
    release_date: Optional[date] = None


@dataclass(frozen=True)
class EdgeRecord:
    parent_id: str
    child_id: str


@dataclass
class HierarchyData:
    """Flat input for one tree, listed level by level.

    ``scope`` is the node the tree was loaded for, when it should take part
    in the tree itself (a rollup for that node needs its children).
    """
    scope: Optional[NodeRecord] = None
    collections: List[NodeRecord] = field(default_factory=list)
    groups: List[NodeRecord] = field(default_factory=list)
    content: List[NodeRecord] = field(default_factory=list)
    group_edges: List[EdgeRecord] = field(default_factory=list)
    content_edges: List[EdgeRecord] = field(default_factory=list)

    def records(self) -> List[NodeRecord]:
        head = [self.scope] if self.scope is not None else []
        return [*head, *self.collections, *self.groups, *self.content]

    def edges(self) -> List[EdgeRecord]:
        return [*self.group_edges, *self.content_edges]


@dataclass
class TreeItem:
    id: str
    kind: NodeKind
    name: str
    order: int
    is_folder: bool
    is_viewable: bool = False
    item_type: Optional[str] = None
    description: str = ""
    release_date: Optional[date] = None
    children: List[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: NodeRecord) -> "TreeItem":
        return cls(
            id=record.id,
            kind=record.kind,
            name=record.name,
            order=record.order,
            is_folder=record.kind in _STRUCTURAL_FOLDERS,
            is_viewable=record.is_viewable,
            item_type=record.item_type,
            description=record.description,
            release_date=record.release_date,
        )


@dataclass
class TreeData:
    """A built tree.

    ``items`` keeps the input order, ``roots`` and every ``children`` list
    are sorted by ``order``. ``warnings`` lists the edges that were skipped.
    """
    items: Dict[str, TreeItem]
    roots: List[str]
    parent_of: Dict[str, str]
    warnings: List[str] = field(default_factory=list)

    def get_item(self, node_id: str) -> Optional[TreeItem]:
        return self.items.get(node_id)

    def get_children(self, node_id: str) -> List[str]:
        item = self.items.get(node_id)
        return list(item.children) if item else []

    def is_folder(self, node_id: str) -> bool:
        item = self.items.get(node_id)
        return bool(item and item.is_folder)

    def render_children(self, parent_id: Optional[str]) -> List[str]:
        """Children shown under *parent_id* (``None`` = top level) when each node is drawn once."""
        if parent_id is None:
            return list(self.roots)
        return [c for c in self.get_children(parent_id) if self.parent_of.get(c) == parent_id]

    def walk(self, expanded: Optional[Set[str]] = None) -> Iterator[Tuple[str, int]]:
        """Depth-first ``(node_id, depth)`` in display order, each node once.

        With *expanded* given, only the children of expanded nodes are visited.
        """
        seen: Set[str] = set()
        stack: List[Tuple[str, int]] = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node_id, depth = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            yield node_id, depth
            if expanded is not None and node_id not in expanded:
                continue
            for child in reversed(self.render_children(node_id)):
                stack.append((child, depth + 1))


def build_hierarchy(data: HierarchyData) -> TreeData:
    """Build the ordered tree for one scope. Never raises on bad edges."""
    records = data.records()
    items: Dict[str, TreeItem] = {}
    for record in records:
        items[record.id] = TreeItem.from_record(record)

    warnings: List[str] = []
    explicit: List[EdgeRecord] = []
    seen_pairs: Set[Tuple[str, str]] = set()
    for label, edges in (("group", data.group_edges), ("content", data.content_edges)):
        for edge in edges:
            pair = (edge.parent_id, edge.child_id)
            if edge.parent_id == edge.child_id:
                warnings.append(f"Skipped self-referencing {label} edge on {edge.child_id}")
                continue
            missing = [node_id for node_id in pair if node_id not in items]
            if missing:
                warnings.append(
                    f"Skipped {label} edge {edge.parent_id} -> {edge.child_id}: "
                    f"unknown {', '.join(missing)}"
                )
                continue
            if pair in seen_pairs:
                warnings.append(f"Skipped repeated {label} edge {edge.parent_id} -> {edge.child_id}")
                continue
            seen_pairs.add(pair)
            explicit.append(edge)

    implicit = [
        EdgeRecord(parent_id=record.parent_id, child_id=record.id)
        for record in records
        if record.parent_id in items
    ]

    children: Dict[str, List[str]] = {}
    for edge in implicit + explicit:
        children.setdefault(edge.parent_id, []).append(edge.child_id)

    # A relationship parent wins over the structural one for rendering.
    parent_of: Dict[str, str] = {}
    for edge in explicit + implicit:
        parent_of.setdefault(edge.child_id, edge.parent_id)

    for edge in explicit:
        items[edge.parent_id].is_folder = True

    # list.sort is stable: equal orders keep their input position.
    for parent_id, child_ids in children.items():
        child_ids.sort(key=lambda child_id: items[child_id].order)
        items[parent_id].children = child_ids

    roots = [node_id for node_id in items if node_id not in parent_of]

    # A closed loop of chosen parents is never reached from a root; break it
    # at its first node, which falls back to its structural parent if that is
    # shown, else to the top level.
    rendered: Dict[str, List[str]] = {}
    for child_id, parent_id in parent_of.items():
        rendered.setdefault(parent_id, []).append(child_id)
    reachable = _reachable(roots, rendered)
    structural = {edge.child_id: edge.parent_id for edge in implicit}
    for node_id in items:
        if node_id in reachable:
            continue
        rendered[parent_of.pop(node_id)].remove(node_id)
        fallback = structural.get(node_id)
        if fallback in reachable:
            warnings.append(f"Cycle through {node_id}: shown under {fallback}")
            parent_of[node_id] = fallback
            rendered.setdefault(fallback, []).append(node_id)
        else:
            warnings.append(f"Cycle through {node_id}: shown at top level")
            roots.append(node_id)
        reachable |= _reachable([node_id], rendered)

    roots.sort(key=lambda node_id: items[node_id].order)

    for warning in warnings:
        logger.warning(warning)

    return TreeData(items=items, roots=roots, parent_of=parent_of, warnings=warnings)


def _reachable(start: List[str], links: Dict[str, List[str]]) -> Set[str]:
    found: Set[str] = set()
    pending = list(start)
    while pending:
        current = pending.pop()
        if current in found:
            continue
        found.add(current)
        pending.extend(links.get(current, []))
    return found
