"""Tests for the scope read endpoints and the progress endpoints."""

from conftest import OTHER


def _find(nodes, node_id):
    for node in nodes:
        if node["id"] == node_id:
            return node
        found = _find(node["children"], node_id)
        if found is not None:
            return found
    return None


class TestChildrenEndpoint:

    def test_group_children_in_order(self, client, sample):
        resp = client.get(f"/api/scopes/{sample.g1}/children")
        assert resp.status_code == 200
        children = resp.json()
        assert [c["id"] for c in children] == [sample.x, sample.y]
        assert all(c["kind"] == "content" for c in children)

    def test_universe_children(self, client, sample):
        ids = {c["id"] for c in client.get(f"/api/scopes/{sample.universe}/children").json()}
        assert ids == {sample.collection, sample.loose}

    def test_unknown_scope(self, client):
        resp = client.get("/api/scopes/grp-ghost/children")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NODE_NOT_FOUND"

    def test_private_universe_hidden_from_others(self, client, sample):
        resp = client.get(f"/api/scopes/{sample.universe}/children", headers={"X-User-Id": OTHER})
        assert resp.status_code == 403


class TestEdgesEndpoint:

    def test_edges_listed(self, client, sample):
        client.post(f"/api/groups/{sample.g1}/children", json={"child_id": sample.g2})
        edges = client.get(f"/api/scopes/{sample.collection}/edges").json()
        assert edges == [{"parent_id": sample.g1, "child_id": sample.g2}]


class TestTreeEndpoint:

    def test_tree_shape(self, client, sample):
        resp = client.get(f"/api/scopes/{sample.collection}/tree")
        assert resp.status_code == 200
        body = resp.json()
        assert body["scope_id"] == sample.collection
        assert body["scope_kind"] == "collection"
        assert [n["id"] for n in body["nodes"]] == [sample.g1, sample.g2]
        g1 = body["nodes"][0]
        assert g1["is_folder"] is True
        assert [c["id"] for c in g1["children"]] == [sample.x, sample.y]
        assert body["warnings"] == []

    def test_tree_carries_progress(self, client, sample):
        client.put(f"/api/progress/{sample.x}", json={"progress": 100})
        body = client.get(f"/api/scopes/{sample.collection}/tree").json()

        assert _find(body["nodes"], sample.x)["progress"] == 100
        assert _find(body["nodes"], sample.g1)["progress"] == 50
        assert _find(body["nodes"], sample.g1)["progress_text"] == "50%"
        assert body["summary"]["total_items"] == 3
        assert body["summary"]["completed_items"] == 1

    def test_edge_child_rendered_once(self, client, sample):
        client.post(f"/api/groups/{sample.g1}/children", json={"child_id": sample.g2})
        body = client.get(f"/api/scopes/{sample.collection}/tree").json()
        assert [n["id"] for n in body["nodes"]] == [sample.g1]
        g1_children = [c["id"] for c in body["nodes"][0]["children"]]
        assert sample.g2 in g1_children


class TestProgressEndpoints:

    def test_set_and_read(self, client, sample):
        resp = client.put(f"/api/progress/{sample.y}", json={"progress": 40})
        assert resp.status_code == 200
        assert resp.json()["progress"] == 40

        scope = client.get(f"/api/progress/scopes/{sample.g1}").json()
        assert scope["progress"] == {sample.y: 40}
        assert scope["summary"]["total_items"] == 2

    def test_out_of_range_rejected(self, client, sample):
        assert client.put(f"/api/progress/{sample.x}", json={"progress": 101}).status_code == 422
        assert client.put(f"/api/progress/{sample.x}", json={"progress": -1}).status_code == 422

    def test_node_progress(self, client, sample):
        client.put(f"/api/progress/{sample.x}", json={"progress": 100})
        client.put(f"/api/progress/{sample.y}", json={"progress": 50})
        body = client.get(f"/api/progress/nodes/{sample.g1}").json()
        assert body["is_viewable"] is False
        assert body["percentage"] == 75
        assert body["text"] == "75%"

    def test_private_scope_denied_to_others(self, client, sample):
        client.put(f"/api/progress/{sample.x}", json={"progress": 100})
        resp = client.get(f"/api/progress/scopes/{sample.g1}", headers={"X-User-Id": OTHER})
        assert resp.status_code == 403
