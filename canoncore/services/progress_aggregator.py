"""Progress arithmetic over a built tree.

Three different rollups live here and they are intentionally not the same:

* ``aggregate`` for an organizational node with direct viewable children
  is the mean of those children's progress (only one level participates);
* ``aggregate`` for an organizational node without direct viewable
  children sums item counts of its organizational children and returns
  completed / total * 100;
* ``summarize_scope`` ignores structure and averages every viewable item.

Nothing is cached: every call computes from the nodes it is given.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .hierarchy_builder import TreeData

logger = logging.getLogger(__name__)

COMPLETE = 100


@dataclass
class ProgressCalculation:
    total_items: int = 0
    completed_items: int = 0
    percentage: float = 0.0


@dataclass
class ProgressNode:
    """A node with its stored progress and, when organizational, its derived value."""
    id: str
    is_viewable: bool
    progress: float = 0.0
    calculated_progress: float = 0.0
    children: List["ProgressNode"] = field(default_factory=list)
    calculation: Optional[ProgressCalculation] = None


def content_progress(node: ProgressNode) -> float:
    """Stored value for viewable nodes, recursive rollup for organizational ones."""
    if node.is_viewable:
        return float(node.progress or 0)
    return aggregate(node.children).percentage


def aggregate(children: List[ProgressNode]) -> ProgressCalculation:
    if not children:
        return ProgressCalculation()

    viewable = [child for child in children if child.is_viewable]

    if not viewable:
        sub_results = [aggregate(child.children) for child in children]
        total_items = sum(result.total_items for result in sub_results)
        completed_items = sum(result.completed_items for result in sub_results)
        return ProgressCalculation(
            total_items=total_items,
            completed_items=completed_items,
            percentage=(completed_items / total_items) * 100 if total_items > 0 else 0.0,
        )

    values = [content_progress(child) for child in viewable]
    return ProgressCalculation(
        total_items=len(viewable),
        completed_items=sum(1 for value in values if value >= COMPLETE),
        percentage=sum(values) / len(values),
    )


def is_completed(node: ProgressNode) -> bool:
    if node.is_viewable:
        return content_progress(node) >= COMPLETE
    return aggregate(node.children).percentage >= COMPLETE


def summarize_scope(items: Iterable, progress_map: Mapping[str, float]) -> ProgressCalculation:
    """Flat average over every viewable item, whatever its depth.

    *items* is any iterable of objects with ``id`` and ``is_viewable``
    (tree items, node records, ORM rows).
    """
    values = [float(progress_map.get(item.id, 0) or 0) for item in items if item.is_viewable]
    if not values:
        return ProgressCalculation()

    return ProgressCalculation(
        total_items=len(values),
        completed_items=sum(1 for value in values if value >= COMPLETE),
        percentage=sum(values) / len(values),
    )


def format_progress_text(calculation: ProgressCalculation) -> str:
    """``"67%"``; halves round up."""
    return f"{math.floor(calculation.percentage + 0.5)}%"


def build_progress_node(tree: TreeData, node_id: str, progress_map: Mapping[str, float]) -> Optional[ProgressNode]:
    """Progress subtree rooted at *node_id*, or None if the id is not in the tree."""
    if node_id not in tree.items:
        return None
    return _convert(tree, node_id, progress_map, frozenset())


def build_progress_tree(tree: TreeData, progress_map: Mapping[str, float]) -> List[ProgressNode]:
    return [_convert(tree, root_id, progress_map, frozenset()) for root_id in tree.roots]


def index_progress_tree(roots: List[ProgressNode]) -> Dict[str, ProgressNode]:
    """Map id → node for every node in the forest (first occurrence wins)."""
    index: Dict[str, ProgressNode] = {}
    pending = list(roots)
    while pending:
        node = pending.pop(0)
        if node.id in index:
            continue
        index[node.id] = node
        pending.extend(node.children)
    return index


def node_progress(tree: TreeData, node_id: str, progress_map: Mapping[str, float]) -> float:
    """Percentage for one node: direct for viewable, derived for organizational, 0 if unknown."""
    node = build_progress_node(tree, node_id, progress_map)
    if node is None:
        return 0.0
    return content_progress(node)


def _convert(tree: TreeData, node_id: str, progress_map: Mapping[str, float], ancestry: frozenset) -> ProgressNode:
    item = tree.items[node_id]
    ancestry = ancestry | {node_id}

    children: List[ProgressNode] = []
    for child_id in item.children:
        if child_id in ancestry:
            logger.warning("Cycle through %s ignored while computing progress", child_id)
            continue
        children.append(_convert(tree, child_id, progress_map, ancestry))

    node = ProgressNode(
        id=item.id,
        is_viewable=item.is_viewable,
        progress=float(progress_map.get(item.id, 0) or 0),
        children=children,
    )
    if not item.is_viewable and children:
        node.calculation = aggregate(children)
        node.calculated_progress = node.calculation.percentage
    return node
