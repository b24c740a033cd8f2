"""Tests for the auth module: tokens, enabled mode and the dev user header."""

import pytest

from canoncore.core.config import settings
from canoncore.core.token_factory import create_token, decode_token
from canoncore.services.entity_service import EntityService
from canoncore.services.user_service import deactivate, ensure_user

from conftest import OTHER, OWNER


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("alice", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "alice"

    def test_wrong_secret_returns_none(self):
        token = create_token("alice", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("alice", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            create_token("alice", "secret", algorithm="RS256")


class TestAuthDisabledMode:

    def test_header_picks_actor(self, client):
        resp = client.post("/api/universes", json={"name": "Mine"}, headers={"X-User-Id": OTHER})
        assert resp.status_code == 201
        assert resp.json()["user_id"] == OTHER

    def test_missing_header_is_anonymous(self, client):
        client.headers.pop("X-User-Id")
        resp = client.post("/api/universes", json={"name": "Nobody's"})
        assert resp.status_code == 201
        assert resp.json()["user_id"] == "anonymous"


class TestAuthEnabledMode:

    @pytest.fixture(autouse=True)
    def _enable_auth(self, monkeypatch):
        monkeypatch.setattr(settings, "auth_enabled", True)

    def _bearer(self, user_id):
        token = create_token(user_id, settings.jwt_secret_key, settings.jwt_algorithm)
        return {"Authorization": f"Bearer {token}"}

    def test_missing_token_is_401(self, client):
        resp = client.post("/api/universes", json={"name": "Nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_garbage_token_is_401(self, client):
        resp = client.post("/api/universes", json={"name": "Nope"}, headers={"Authorization": "Bearer x.y.z"})
        assert resp.status_code == 401

    def test_token_for_unknown_user_is_401(self, client):
        resp = client.post("/api/universes", json={"name": "Nope"}, headers=self._bearer("ghost"))
        assert resp.status_code == 401

    def test_valid_token(self, client, db):
        ensure_user(db, OWNER)
        db.commit()
        resp = client.post("/api/universes", json={"name": "Signed"}, headers=self._bearer(OWNER))
        assert resp.status_code == 201
        assert resp.json()["user_id"] == OWNER

    def test_header_ignored_when_enabled(self, client, db):
        ensure_user(db, OWNER)
        db.commit()
        resp = client.post(
            "/api/universes",
            json={"name": "Signed"},
            headers={**self._bearer(OWNER), "X-User-Id": OTHER},
        )
        assert resp.json()["user_id"] == OWNER

    def test_deactivated_user_rejected(self, client, db):
        ensure_user(db, OWNER)
        db.commit()
        deactivate(db, OWNER)
        resp = client.post("/api/universes", json={"name": "Blocked"}, headers=self._bearer(OWNER))
        assert resp.status_code == 401

    def test_public_universe_readable_without_token(self, client, db):
        universe = EntityService(db).create_universe(OWNER, "Shared", is_public=True)
        for path in (
            f"/api/scopes/{universe.id}/children",
            f"/api/scopes/{universe.id}/tree",
            f"/api/progress/scopes/{universe.id}",
            f"/api/progress/nodes/{universe.id}",
        ):
            resp = client.get(path)
            assert resp.status_code == 200, path

    def test_private_universe_hidden_without_token(self, client, db):
        universe = EntityService(db).create_universe(OWNER, "Private")
        resp = client.get(f"/api/scopes/{universe.id}/tree")
        assert resp.status_code == 403
        assert resp.json()["error"] == "ACCESS_DENIED"

    def test_invalid_token_reads_as_anonymous(self, client, db):
        universe = EntityService(db).create_universe(OWNER, "Private")
        resp = client.get(f"/api/scopes/{universe.id}/tree", headers=self._bearer("ghost"))
        assert resp.status_code == 403

    def test_owner_token_reads_private_universe(self, client, db):
        universe = EntityService(db).create_universe(OWNER, "Private")
        resp = client.get(f"/api/scopes/{universe.id}/tree", headers=self._bearer(OWNER))
        assert resp.status_code == 200
        assert resp.json()["scope_id"] == universe.id

    def test_progress_write_still_needs_token(self, client, db):
        entity = EntityService(db)
        universe = entity.create_universe(OWNER, "Shared", is_public=True)
        episode = entity.create_content(OWNER, universe.id, "Pilot")
        resp = client.put(f"/api/progress/{episode.id}", json={"progress": 50})
        assert resp.status_code == 401
