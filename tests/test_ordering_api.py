"""Tests for PUT /api/scopes/{id}/order and PUT /api/nodes/{id}/move."""

from conftest import OTHER


def _ids(client, scope_id):
    return [child["id"] for child in client.get(f"/api/scopes/{scope_id}/children").json()]


class TestReorderEndpoint:

    def test_reorder_roundtrip(self, client, sample):
        resp = client.put(
            f"/api/scopes/{sample.g1}/order",
            json={"items": [{"id": sample.x, "order": 2}, {"id": sample.y, "order": 1}]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["rebuild_required"] is True
        assert _ids(client, sample.g1) == [sample.y, sample.x]

    def test_negative_order_is_operation_result(self, client, sample):
        resp = client.put(f"/api/scopes/{sample.g1}/order", json={"items": [{"id": sample.x, "order": -1}]})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "items.order"

    def test_duplicate_ids_are_operation_result(self, client, sample):
        resp = client.put(
            f"/api/scopes/{sample.g1}/order",
            json={"items": [{"id": sample.x, "order": 0}, {"id": sample.x, "order": 1}]},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    def test_empty_batch_is_operation_result(self, client, sample):
        resp = client.put(f"/api/scopes/{sample.g1}/order", json={"items": []})
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    def test_malformed_body_is_422(self, client, sample):
        resp = client.put(f"/api/scopes/{sample.g1}/order", json={"items": [{"id": sample.x, "order": "first"}]})
        assert resp.status_code == 422

    def test_failure_maps_to_status(self, client, sample):
        resp = client.put(
            f"/api/scopes/{sample.g1}/order",
            json={"items": [{"id": sample.x, "order": 1}]},
            headers={"X-User-Id": OTHER},
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "ACCESS_DENIED"


class TestMoveEndpoint:

    def test_move_between_groups(self, client, sample):
        resp = client.put(f"/api/nodes/{sample.x}/move", json={"new_parent_id": sample.g2, "new_order": 0})
        assert resp.status_code == 200
        assert resp.json()["data"]["parent_id"] == sample.g2
        assert _ids(client, sample.g2)[0] == sample.x
        assert sample.x not in _ids(client, sample.g1)

    def test_move_unknown_node(self, client, sample):
        resp = client.put("/api/nodes/cnt-ghost/move", json={"new_parent_id": sample.g2})
        assert resp.status_code == 404
        assert resp.json()["code"] == "NODE_NOT_FOUND"

    def test_cycle_is_400(self, client, sample):
        client.put(f"/api/nodes/{sample.g2}/move", json={"new_parent_id": sample.g1})
        resp = client.put(f"/api/nodes/{sample.g1}/move", json={"new_parent_id": sample.g2})
        assert resp.status_code == 400
        assert resp.json()["code"] == "CIRCULAR_HIERARCHY"

    def test_negative_new_order_is_operation_result(self, client, sample):
        resp = client.put(f"/api/nodes/{sample.x}/move", json={"new_parent_id": sample.g2, "new_order": -3})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "new_order"
