"""Tests for EntityService: creation order, links, cascading delete."""

import pytest

from canoncore.exceptions import AuthorizationError, CircularHierarchyError, NodeNotFoundError, ValidationError
from canoncore.models import Content, ContentRelationship, Group, GroupRelationship, User, UserProgress
from canoncore.repositories import HierarchyRepository
from canoncore.services import audit_service
from canoncore.services.entity_service import EntityService
from canoncore.services.progress_service import ProgressService

from conftest import OTHER, OWNER


class TestCreate:

    def test_order_is_sibling_count(self, db, sample):
        assert db.get(Group, sample.g1).sort_order == 0
        assert db.get(Group, sample.g2).sort_order == 1
        assert db.get(Content, sample.x).sort_order == 0
        assert db.get(Content, sample.y).sort_order == 1
        assert db.get(Content, sample.z).sort_order == 0

    def test_owner_row_created_on_demand(self, db, sample):
        assert db.get(User, OWNER) is not None

    def test_ids_carry_kind_prefix(self, sample):
        assert sample.universe.startswith("uni-")
        assert sample.collection.startswith("col-")
        assert sample.g1.startswith("grp-")
        assert sample.x.startswith("cnt-")

    def test_content_group_must_be_in_universe(self, db, sample):
        svc = EntityService(db)
        other = svc.create_universe(OWNER, "Elsewhere")
        with pytest.raises(ValidationError):
            svc.create_content(OWNER, other.id, "Stray", group_id=sample.g1)

    def test_non_owner_cannot_create(self, db, sample):
        with pytest.raises(AuthorizationError):
            EntityService(db).create_collection(OTHER, sample.universe, "Intruder")

    def test_unknown_parent(self, db):
        with pytest.raises(NodeNotFoundError):
            EntityService(db).create_collection(OWNER, "uni-missing", "Nowhere")

    def test_creation_is_audited(self, db, sample):
        (entry,) = audit_service.get_by_resource(db, "group", sample.g1)
        assert entry.action == "create"
        assert entry.user_id == OWNER


class TestLink:

    def test_link_groups_keeps_collection_child(self, db, sample):
        EntityService(db).link_groups(OWNER, sample.g1, sample.g2)
        repo = HierarchyRepository(db)
        assert {g.id for g in repo.get_by_parent_scope(sample.collection)} == {sample.g1, sample.g2}
        assert sample.g2 in [g.id for g in repo.get_by_parent_scope(sample.g1)]

    def test_link_is_idempotent(self, db, sample):
        svc = EntityService(db)
        svc.link_groups(OWNER, sample.g1, sample.g2)
        svc.link_groups(OWNER, sample.g1, sample.g2)
        assert db.query(GroupRelationship).count() == 1

    def test_cycle_rejected(self, db, sample):
        svc = EntityService(db)
        svc.link_groups(OWNER, sample.g1, sample.g2)
        with pytest.raises(CircularHierarchyError):
            svc.link_groups(OWNER, sample.g2, sample.g1)

    def test_self_link_rejected(self, db, sample):
        with pytest.raises(CircularHierarchyError):
            EntityService(db).link_groups(OWNER, sample.g1, sample.g1)

    def test_viewable_content_cannot_hold_children(self, db, sample):
        with pytest.raises(ValidationError):
            EntityService(db).link_content(OWNER, sample.x, sample.y)

    def test_content_link_aligns_group(self, db, sample):
        svc = EntityService(db)
        season = svc.create_content(OWNER, sample.universe, "Season", group_id=sample.g2, is_viewable=False)
        svc.link_content(OWNER, season.id, sample.x)
        db.expire_all()
        assert db.get(Content, sample.x).group_id == sample.g2


class TestDelete:

    def test_group_delete_cascades_to_content_and_progress(self, db, sample):
        ProgressService(db).set_progress(OWNER, sample.x, 50)
        result = EntityService(db).delete_node(OWNER, sample.g1)

        assert result.groups == 1
        assert result.content == 2
        assert db.get(Group, sample.g1) is None
        assert db.get(Content, sample.x) is None
        assert db.get(Content, sample.y) is None
        assert db.query(UserProgress).count() == 0
        assert db.get(Content, sample.z) is not None

    def test_edge_descendants_are_deleted(self, db, sample):
        svc = EntityService(db)
        svc.link_groups(OWNER, sample.g1, sample.g2)
        result = svc.delete_node(OWNER, sample.g1)
        assert result.groups == 2
        assert db.get(Content, sample.z) is None
        assert db.query(GroupRelationship).count() == 0

    def test_content_delete_removes_edges(self, db, sample):
        svc = EntityService(db)
        season = svc.create_content(OWNER, sample.universe, "Season", is_viewable=False)
        svc.link_content(OWNER, season.id, sample.loose)
        svc.delete_node(OWNER, season.id)
        assert db.get(Content, sample.loose) is None
        assert db.query(ContentRelationship).count() == 0

    def test_universe_delete_removes_everything(self, db, sample):
        result = EntityService(db).delete_node(OWNER, sample.universe)
        assert result.collections == 1
        assert result.groups == 2
        assert result.content == 4
        assert db.query(Content).count() == 0
        assert db.query(Group).count() == 0

    def test_non_owner_cannot_delete(self, db, sample):
        with pytest.raises(AuthorizationError):
            EntityService(db).delete_node(OTHER, sample.g1)
