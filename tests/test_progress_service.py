"""Tests for ProgressService: validation at the mutation boundary and fresh rollups."""

import pytest

from canoncore.exceptions import AuthorizationError, NodeNotFoundError, ValidationError
from canoncore.models import UserProgress
from canoncore.services.entity_service import EntityService
from canoncore.services.ordering_service import OrderingService
from canoncore.services.progress_service import ProgressService

from conftest import OTHER, OWNER


class TestSetProgress:

    def test_upsert_keeps_one_row(self, db, sample):
        svc = ProgressService(db)
        svc.set_progress(OWNER, sample.x, 30)
        record = svc.set_progress(OWNER, sample.x, 60)
        assert record.progress == 60
        assert db.query(UserProgress).count() == 1

    @pytest.mark.parametrize("value", [-1, 101])
    def test_out_of_range_rejected(self, db, sample, value):
        with pytest.raises(ValidationError):
            ProgressService(db).set_progress(OWNER, sample.x, value)
        assert db.query(UserProgress).count() == 0

    def test_organizational_content_rejected(self, db, sample):
        season = EntityService(db).create_content(OWNER, sample.universe, "Season", is_viewable=False)
        with pytest.raises(ValidationError):
            ProgressService(db).set_progress(OWNER, season.id, 50)

    def test_unknown_content(self, db, sample):
        with pytest.raises(NodeNotFoundError):
            ProgressService(db).set_progress(OWNER, "cnt-ghost", 50)

    def test_private_universe_closed_to_others(self, db, sample):
        with pytest.raises(AuthorizationError):
            ProgressService(db).set_progress(OTHER, sample.x, 50)

    def test_public_universe_open_to_readers(self, db):
        entity = EntityService(db)
        universe = entity.create_universe(OWNER, "Shared", is_public=True)
        episode = entity.create_content(OWNER, universe.id, "Pilot")
        record = ProgressService(db).set_progress(OTHER, episode.id, 100)
        assert record.user_id == OTHER


class TestReadProgress:

    def test_scope_summary_is_flat_average(self, db, sample):
        svc = ProgressService(db)
        svc.set_progress(OWNER, sample.x, 100)
        svc.set_progress(OWNER, sample.y, 50)
        result = svc.get_scope(OWNER, sample.universe)
        assert result.progress == {sample.x: 100, sample.y: 50}
        assert result.summary.total_items == 4
        assert result.summary.completed_items == 1
        assert result.summary.percentage == pytest.approx(37.5)
        assert result.summary.text == "38%"

    def test_progress_is_per_user(self, db):
        entity = EntityService(db)
        universe = entity.create_universe(OWNER, "Shared", is_public=True)
        episode = entity.create_content(OWNER, universe.id, "Pilot")
        svc = ProgressService(db)
        svc.set_progress(OTHER, episode.id, 100)
        assert svc.get_scope(OWNER, universe.id).progress == {}

    def test_group_node_averages_direct_viewables(self, db, sample):
        svc = ProgressService(db)
        svc.set_progress(OWNER, sample.x, 100)
        svc.set_progress(OWNER, sample.y, 50)
        node = svc.get_node(OWNER, sample.g1)
        assert not node.is_viewable
        assert node.percentage == 75
        assert node.calculation.completed_items == 1
        assert node.calculation.total_items == 2

    def test_viewable_node_reports_stored_value(self, db, sample):
        svc = ProgressService(db)
        svc.set_progress(OWNER, sample.z, 40)
        node = svc.get_node(OWNER, sample.z)
        assert node.is_viewable
        assert node.percentage == 40
        assert not node.completed

    def test_rollup_reflects_moves_immediately(self, db, sample):
        svc = ProgressService(db)
        svc.set_progress(OWNER, sample.x, 100)
        assert svc.get_node(OWNER, sample.g2).percentage == 0
        OrderingService(db).move(OWNER, sample.x, sample.g2, 0)
        assert svc.get_node(OWNER, sample.g2).percentage == 50

    def test_linked_content_still_counts_for_its_group(self, db, sample):
        entity = EntityService(db)
        season = entity.create_content(OWNER, sample.universe, "Season", group_id=sample.g1, is_viewable=False)
        entity.link_content(OWNER, season.id, sample.x)
        svc = ProgressService(db)
        svc.set_progress(OWNER, sample.x, 50)
        node = svc.get_node(OWNER, sample.g1)
        assert sample.x in node.children
        assert node.percentage == 25
        assert node.calculation.total_items == 2

    def test_group_holding_organizational_and_linked_viewable(self, db):
        entity = EntityService(db)
        universe = entity.create_universe(OWNER, "Universe")
        collection = entity.create_collection(OWNER, universe.id, "Collection")
        group = entity.create_group(OWNER, collection.id, "G1")
        season = entity.create_content(OWNER, universe.id, "Season", group_id=group.id, is_viewable=False)
        episode = entity.create_content(OWNER, universe.id, "Episode", group_id=group.id)
        entity.link_content(OWNER, season.id, episode.id)
        svc = ProgressService(db)
        svc.set_progress(OWNER, episode.id, 50)

        node = svc.get_node(OWNER, group.id)
        assert set(node.children) == {season.id, episode.id}
        assert node.percentage == 50
        assert svc.get_node(OWNER, season.id).percentage == 50

    def test_organizational_node_without_children(self, db, sample):
        season = EntityService(db).create_content(OWNER, sample.universe, "Season", is_viewable=False)
        node = ProgressService(db).get_node(OWNER, season.id)
        assert node.percentage == 0
        assert node.calculation.total_items == 0
        assert not node.completed
        assert node.children == []
