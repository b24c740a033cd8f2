"""Server-side tree controller: expand, select, drag and drop over a built tree.

``TreeSurface`` holds the view state of one scope for one actor. It never
edits the tree itself: a drop is translated into a reorder (same parent) or
a move (different parent) on the ordering service, and the tree is then
re-fetched and rebuilt from scratch. Every rebuild resets the view state.

State machines:
    node:  collapsed <-> expanded
    node:  unselected <-> selected   (single selection)
    drag:  idle -> dragging -> dropped | cancelled   (back to idle on rebuild)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from ..exceptions import ValidationError
from ..schemas.ordering import OperationResult, ReorderItem
from .hierarchy_builder import TreeData

logger = logging.getLogger(__name__)

TreeLoader = Callable[[], TreeData]


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


@dataclass
class TreeRow:
    """One visible line of the rendered tree."""
    id: str
    name: str
    depth: int
    is_folder: bool
    is_expanded: bool
    is_selected: bool
    is_dragging: bool


class TreeSurface:
    """View state and drag-and-drop for one scope.

    Args:
        loader: Re-fetches and builds the tree for the scope (no caching).
        engine: The ordering service used to persist drops.
        actor_id: Acting user, passed through to the engine.
        scope_id: The scope the tree is built for; top-level drops reorder it.
    """

    def __init__(self, loader: TreeLoader, engine, actor_id: str, scope_id: str):
        self._loader = loader
        self._engine = engine
        self.actor_id = actor_id
        self.scope_id = scope_id

        self.tree: TreeData = loader()
        self.expanded: Set[str] = set()
        self.selected_id: Optional[str] = None
        self.drag_phase = DragPhase.IDLE
        self.dragged_id: Optional[str] = None
        self.last_result: Optional[OperationResult] = None

    # --- building ---

    def rebuild(self) -> TreeData:
        """Re-fetch, rebuild and reset every piece of view state."""
        self.tree = self._loader()
        self.expanded = set()
        self.selected_id = None
        self.drag_phase = DragPhase.IDLE
        self.dragged_id = None
        return self.tree

    def rows(self) -> List[TreeRow]:
        """Visible rows, depth-first; children only under expanded folders."""
        rows = []
        for node_id, depth in self.tree.walk(expanded=self.expanded):
            item = self.tree.items[node_id]
            rows.append(TreeRow(
                id=node_id,
                name=item.name,
                depth=depth,
                is_folder=item.is_folder,
                is_expanded=node_id in self.expanded,
                is_selected=node_id == self.selected_id,
                is_dragging=node_id == self.dragged_id,
            ))
        return rows

    def nested(self, decorate: Optional[Callable[[str], Dict]] = None) -> List[Dict]:
        """Whole tree as nested dicts, every node once under its chosen parent.

        *decorate* may add fields per node (progress, for instance).
        """
        def render(node_id: str, path: frozenset) -> Dict:
            item = self.tree.items[node_id]
            node = {
                "id": item.id,
                "kind": item.kind.value,
                "name": item.name,
                "description": item.description,
                "order": item.order,
                "is_folder": item.is_folder,
                "is_viewable": item.is_viewable,
                "item_type": item.item_type,
                "release_date": item.release_date,
                "children": [
                    render(child_id, path | {child_id})
                    for child_id in self.tree.render_children(node_id)
                    if child_id not in path
                ],
            }
            if decorate is not None:
                node.update(decorate(node_id))
            return node

        return [render(root_id, frozenset({root_id})) for root_id in self.tree.render_children(None)]

    # --- expand / select ---

    def toggle(self, node_id: str) -> bool:
        """Flip expansion of a folder. Returns the new state."""
        self._require_item(node_id)
        if node_id in self.expanded:
            self.expanded.discard(node_id)
            return False
        if self.tree.is_folder(node_id):
            self.expanded.add(node_id)
            return True
        return False

    def expand(self, node_id: str) -> None:
        self._require_item(node_id)
        if self.tree.is_folder(node_id):
            self.expanded.add(node_id)

    def collapse(self, node_id: str) -> None:
        self._require_item(node_id)
        self.expanded.discard(node_id)

    def select(self, node_id: Optional[str]) -> None:
        """Select one node, or clear the selection with None."""
        if node_id is not None:
            self._require_item(node_id)
        self.selected_id = node_id

    # --- drag and drop ---

    def begin_drag(self, node_id: str) -> None:
        self._require_item(node_id)
        if self.drag_phase == DragPhase.DRAGGING:
            raise ValidationError("A drag is already in progress", field="node_id")
        self.drag_phase = DragPhase.DRAGGING
        self.dragged_id = node_id

    def cancel_drag(self) -> None:
        if self.drag_phase != DragPhase.DRAGGING:
            raise ValidationError("No drag in progress")
        self.drag_phase = DragPhase.CANCELLED
        self.dragged_id = None

    def drop(self, target_parent_id: Optional[str], index: int) -> OperationResult:
        """Drop the dragged node under *target_parent_id* (None = top level) at *index*.

        Same parent: the new sibling sequence is sent as a reorder.
        Different parent: a move. Either way the tree is rebuilt afterwards,
        also when the engine reported a failure.
        """
        if self.drag_phase != DragPhase.DRAGGING or self.dragged_id is None:
            raise ValidationError("Drop without an active drag")
        if target_parent_id is not None:
            self._require_item(target_parent_id)
        if index < 0:
            raise ValidationError(f"Invalid drop index: {index}", field="index")

        node_id = self.dragged_id
        current_parent = self.tree.parent_of.get(node_id)
        self.drag_phase = DragPhase.DROPPED

        if current_parent == target_parent_id:
            siblings = [c for c in self.tree.render_children(target_parent_id) if c != node_id]
            siblings.insert(min(index, len(siblings)), node_id)
            items = [ReorderItem(id=sibling_id, order=order) for order, sibling_id in enumerate(siblings)]
            result = self._engine.reorder(self.actor_id, target_parent_id or self.scope_id, items)
        else:
            result = self._engine.move(self.actor_id, node_id, target_parent_id or self.scope_id, index)

        if not result.success:
            logger.warning("Drop of %s rejected: %s", node_id, result.error)

        self.last_result = result
        self.rebuild()
        return result

    def _require_item(self, node_id: str) -> None:
        if self.tree.get_item(node_id) is None:
            raise ValidationError(f"Unknown node in this tree: {node_id}", field="node_id")
