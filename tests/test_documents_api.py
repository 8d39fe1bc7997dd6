"""Tests for document, version and share endpoints, covering sharing end to end."""

import pytest

from tests.conftest import auth_headers, make_document


@pytest.fixture()
def workspace_id(client, alice):
    resp = client.post("/api/workspaces", json={"name": "Diagrams"}, headers=auth_headers(alice))
    return resp.json()["id"]


@pytest.fixture()
def doc_id(client, alice, workspace_id):
    resp = client.post(
        f"/api/workspaces/{workspace_id}/documents", json=make_document(), headers=auth_headers(alice)
    )
    assert resp.status_code == 201
    return resp.json()["id"]


class TestDocumentCRUD:

    def test_create_document(self, client, alice, workspace_id):
        resp = client.post(
            f"/api/workspaces/{workspace_id}/documents",
            json=make_document(title="Checkout Flow"),
            headers=auth_headers(alice),
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["slug"] == "checkout-flow"
        assert data["type"] == "mermaid"
        assert data["latest_version"]["version_number"] == 1

    def test_get_document(self, client, alice, doc_id):
        resp = client.get(f"/api/documents/{doc_id}", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["latest_version"]["content"] == "graph TD\n  A-->B"

    def test_list_documents(self, client, alice, workspace_id, doc_id):
        body = client.get(f"/api/workspaces/{workspace_id}/documents", headers=auth_headers(alice)).json()
        assert body["total"] == 1
        assert body["data"][0]["id"] == doc_id

    def test_update_with_content_adds_version(self, client, alice, doc_id):
        resp = client.put(
            f"/api/documents/{doc_id}",
            json={"title": "Renamed", "content": "graph LR\n  A-->C"},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"
        assert resp.json()["latest_version"]["version_number"] == 2

    def test_delete_document(self, client, alice, doc_id):
        assert client.delete(f"/api/documents/{doc_id}", headers=auth_headers(alice)).status_code == 204
        assert client.get(f"/api/documents/{doc_id}", headers=auth_headers(alice)).status_code == 404

    def test_duplicate_slug_conflicts(self, client, alice, workspace_id, doc_id):
        resp = client.post(
            f"/api/workspaces/{workspace_id}/documents", json=make_document(), headers=auth_headers(alice)
        )
        assert resp.status_code == 409

    def test_invalid_slug_is_400(self, client, alice, workspace_id):
        resp = client.post(
            f"/api/workspaces/{workspace_id}/documents",
            json=make_document(slug="Not A Slug!"),
            headers=auth_headers(alice),
        )
        assert resp.status_code == 400

    def test_workspace_delete_hides_documents(self, client, alice, workspace_id, doc_id):
        client.delete(f"/api/workspaces/{workspace_id}", headers=auth_headers(alice))
        assert client.get(f"/api/documents/{doc_id}", headers=auth_headers(alice)).status_code == 404


class TestSharingScenario:
    """Private doc: stranger 403 → view grant reads but cannot edit → edit grant edits."""

    def test_view_then_edit(self, client, alice, bob, doc_id):
        assert client.get(f"/api/documents/{doc_id}", headers=auth_headers(bob)).status_code == 403

        share = client.post(
            f"/api/documents/{doc_id}/shares",
            json={"user_id": bob.id, "permission": "view"},
            headers=auth_headers(alice),
        )
        assert share.status_code == 201

        assert client.get(f"/api/documents/{doc_id}", headers=auth_headers(bob)).status_code == 200
        update = client.put(f"/api/documents/{doc_id}", json={"title": "Bob's"}, headers=auth_headers(bob))
        assert update.status_code == 403

        client.post(
            f"/api/documents/{doc_id}/shares",
            json={"user_id": bob.id, "permission": "edit"},
            headers=auth_headers(alice),
        )
        update = client.put(f"/api/documents/{doc_id}", json={"title": "Bob's"}, headers=auth_headers(bob))
        assert update.status_code == 200

    def test_link_token_via_header_and_query(self, client, alice, doc_id):
        token = client.post(
            f"/api/documents/{doc_id}/shares", json={}, headers=auth_headers(alice)
        ).json()["access_token"]

        assert client.get(f"/api/documents/{doc_id}").status_code == 403
        assert client.get(f"/api/documents/{doc_id}", headers={"X-Share-Token": token}).status_code == 200
        assert client.get(f"/api/documents/{doc_id}?share_token={token}").status_code == 200

    def test_user_grant_token_is_not_a_public_link(self, client, alice, bob, make_user, doc_id):
        token = client.post(
            f"/api/documents/{doc_id}/shares", json={"user_id": bob.id}, headers=auth_headers(alice)
        ).json()["access_token"]
        carol = make_user("carol@example.com")

        assert client.get(f"/api/documents/{doc_id}", headers={"X-Share-Token": token}).status_code == 403
        assert client.get(
            f"/api/documents/{doc_id}", headers={**auth_headers(carol), "X-Share-Token": token}
        ).status_code == 403
        assert client.get(
            f"/api/documents/{doc_id}", headers={**auth_headers(bob), "X-Share-Token": token}
        ).status_code == 200

    def test_view_link_cannot_write(self, client, alice, doc_id):
        token = client.post(
            f"/api/documents/{doc_id}/shares", json={"permission": "view"}, headers=auth_headers(alice)
        ).json()["access_token"]
        resp = client.post(
            f"/api/documents/{doc_id}/versions", json={"content": "x"}, headers={"X-Share-Token": token}
        )
        assert resp.status_code == 403

    def test_anonymous_write_without_token_is_401(self, client, doc_id):
        assert client.put(f"/api/documents/{doc_id}", json={"title": "x"}).status_code == 401

    def test_only_owner_manages_shares(self, client, alice, bob, doc_id):
        client.post(
            f"/api/documents/{doc_id}/shares",
            json={"user_id": bob.id, "permission": "edit"},
            headers=auth_headers(alice),
        )
        assert client.get(f"/api/documents/{doc_id}/shares", headers=auth_headers(bob)).status_code == 403

    def test_revoke_share(self, client, alice, bob, doc_id):
        share_id = client.post(
            f"/api/documents/{doc_id}/shares", json={"user_id": bob.id}, headers=auth_headers(alice)
        ).json()["id"]
        resp = client.delete(f"/api/documents/{doc_id}/shares/{share_id}", headers=auth_headers(alice))
        assert resp.status_code == 204
        assert client.get(f"/api/documents/{doc_id}", headers=auth_headers(bob)).status_code == 403
        assert client.get(f"/api/documents/{doc_id}/shares", headers=auth_headers(alice)).json() == []

    def test_share_with_unknown_user_is_404(self, client, alice, doc_id):
        resp = client.post(
            f"/api/documents/{doc_id}/shares", json={"user_id": 424242}, headers=auth_headers(alice)
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "USER_NOT_FOUND"


class TestVersions:

    def test_versions_are_numbered_consecutively(self, client, alice, doc_id):
        for i in range(2, 5):
            resp = client.post(
                f"/api/documents/{doc_id}/versions",
                json={"content": f"v{i}", "change_description": f"step {i}"},
                headers=auth_headers(alice),
            )
            assert resp.status_code == 201
            assert resp.json()["version_number"] == i

        body = client.get(f"/api/documents/{doc_id}/versions", headers=auth_headers(alice)).json()
        assert [v["version_number"] for v in body["data"]] == [4, 3, 2, 1]
        assert body["total"] == 4

    def test_latest_and_by_number(self, client, alice, doc_id):
        client.post(f"/api/documents/{doc_id}/versions", json={"content": "v2"}, headers=auth_headers(alice))
        latest = client.get(f"/api/documents/{doc_id}/versions/latest", headers=auth_headers(alice))
        assert latest.json()["version_number"] == 2
        first = client.get(f"/api/documents/{doc_id}/versions/1", headers=auth_headers(alice))
        assert first.json()["content"] == "graph TD\n  A-->B"

    def test_missing_version_is_404(self, client, alice, doc_id):
        resp = client.get(f"/api/documents/{doc_id}/versions/99", headers=auth_headers(alice))
        assert resp.status_code == 404
        assert resp.json()["error"] == "VERSION_NOT_FOUND"

    def test_versions_of_private_doc_forbidden(self, client, bob, doc_id):
        assert client.get(f"/api/documents/{doc_id}/versions", headers=auth_headers(bob)).status_code == 403
