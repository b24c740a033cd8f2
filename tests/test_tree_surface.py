"""Tests for TreeSurface: view state machines and drop translation."""

import pytest

from canoncore.exceptions import ValidationError
from canoncore.schemas.ordering import OperationResult
from canoncore.services.hierarchy_builder import EdgeRecord, HierarchyData, NodeKind, NodeRecord, build_hierarchy
from canoncore.services.hierarchy_service import HierarchyService
from canoncore.services.tree_surface import DragPhase, TreeSurface

from conftest import OWNER


class _RecordingEngine:
    """Stands in for the ordering service and remembers each call."""

    def __init__(self):
        self.calls = []

    def reorder(self, actor_id, scope_id, items):
        self.calls.append(("reorder", scope_id, [(item.id, item.order) for item in items]))
        return OperationResult.ok(scope_id=scope_id)

    def move(self, actor_id, node_id, new_parent_id, new_order):
        self.calls.append(("move", node_id, new_parent_id, new_order))
        return OperationResult.ok(node_id=node_id)


def _static_tree():
    data = HierarchyData(
        groups=[
            NodeRecord(id="G1", kind=NodeKind.GROUP, name="G1", order=0),
            NodeRecord(id="G2", kind=NodeKind.GROUP, name="G2", order=1),
        ],
        content=[
            NodeRecord(id="A", kind=NodeKind.CONTENT, name="A", order=0, parent_id="G1", is_viewable=True),
            NodeRecord(id="B", kind=NodeKind.CONTENT, name="B", order=1, parent_id="G1", is_viewable=True),
            NodeRecord(id="C", kind=NodeKind.CONTENT, name="C", order=0, parent_id="G2", is_viewable=True),
        ],
    )
    return build_hierarchy(data)


@pytest.fixture()
def surface():
    return TreeSurface(_static_tree, _RecordingEngine(), actor_id=OWNER, scope_id="COL")


class TestRows:

    def test_collapsed_tree_shows_roots_only(self, surface):
        assert [row.id for row in surface.rows()] == ["G1", "G2"]

    def test_expanded_folder_shows_children(self, surface):
        surface.expand("G1")
        rows = surface.rows()
        assert [(row.id, row.depth) for row in rows] == [("G1", 0), ("A", 1), ("B", 1), ("G2", 0)]
        assert rows[0].is_expanded

    def test_toggle_flips_state(self, surface):
        assert surface.toggle("G1") is True
        assert surface.toggle("G1") is False

    def test_toggle_leaf_stays_collapsed(self, surface):
        assert surface.toggle("A") is False

    def test_single_selection(self, surface):
        surface.select("G1")
        surface.select("G2")
        assert [row.id for row in surface.rows() if row.is_selected] == ["G2"]

    def test_unknown_node_rejected(self, surface):
        with pytest.raises(ValidationError):
            surface.expand("nope")

    def test_nested_renders_every_node_once(self):
        data = HierarchyData(
            groups=[
                NodeRecord(id="G1", kind=NodeKind.GROUP, name="G1", order=0),
                NodeRecord(id="G2", kind=NodeKind.GROUP, name="G2", order=1),
                NodeRecord(id="G3", kind=NodeKind.GROUP, name="G3", order=2),
            ],
            group_edges=[EdgeRecord("G1", "G3"), EdgeRecord("G2", "G3")],
        )
        surface = TreeSurface(lambda: build_hierarchy(data), _RecordingEngine(), OWNER, "COL")
        nested = surface.nested()
        assert [node["id"] for node in nested] == ["G1", "G2"]
        assert [child["id"] for child in nested[0]["children"]] == ["G3"]
        assert nested[1]["children"] == []


class TestDrag:

    def test_drop_without_drag_rejected(self, surface):
        with pytest.raises(ValidationError):
            surface.drop("G1", 0)

    def test_cancel_returns_to_cancelled(self, surface):
        surface.begin_drag("A")
        surface.cancel_drag()
        assert surface.drag_phase == DragPhase.CANCELLED
        assert surface.dragged_id is None

    def test_same_parent_drop_reorders(self, surface):
        engine = surface._engine
        surface.begin_drag("B")
        result = surface.drop("G1", 0)
        assert result.success
        assert engine.calls == [("reorder", "G1", [("B", 0), ("A", 1)])]

    def test_top_level_drop_reorders_scope(self, surface):
        engine = surface._engine
        surface.begin_drag("G2")
        surface.drop(None, 0)
        assert engine.calls == [("reorder", "COL", [("G2", 0), ("G1", 1)])]

    def test_cross_parent_drop_moves(self, surface):
        engine = surface._engine
        surface.begin_drag("A")
        surface.drop("G2", 0)
        assert engine.calls == [("move", "A", "G2", 0)]

    def test_rebuild_resets_state(self, surface):
        surface.expand("G1")
        surface.select("A")
        surface.begin_drag("A")
        surface.drop("G2", 0)
        assert surface.expanded == set()
        assert surface.selected_id is None
        assert surface.drag_phase == DragPhase.IDLE


class TestSurfaceAgainstStore:

    def test_drop_persists_and_rebuilds(self, db, sample):
        surface = HierarchyService(db).open_surface(OWNER, sample.collection)
        surface.begin_drag(sample.x)
        result = surface.drop(sample.g2, 0)
        assert result.success
        assert surface.tree.get_children(sample.g2)[0] == sample.x
        assert sample.x not in surface.tree.get_children(sample.g1)

    def test_rejected_drop_still_rebuilds(self, db, sample):
        surface = HierarchyService(db).open_surface(OWNER, sample.collection)
        surface.begin_drag(sample.g1)
        result = surface.drop(sample.x, 0)
        assert not result.success
        assert surface.drag_phase == DragPhase.IDLE
        assert surface.tree.roots == [sample.g1, sample.g2]
