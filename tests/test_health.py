"""Tests for root, health and per-request headers."""

from diagramhub import __version__
from tests.conftest import auth_headers


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"name": "diagramhub API", "version": __version__, "status": "running"}


def test_health_reports_db_and_storage(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["db"] == "ok"
    assert body["storage"] == "local"
    assert body["version"] == __version__
    assert body["workspace_count"] == 0


def test_health_counts_active_workspaces(client, alice):
    ids = [
        client.post("/api/workspaces", json={"name": n}, headers=auth_headers(alice)).json()["id"]
        for n in ("A", "B")
    ]
    client.delete(f"/api/workspaces/{ids[0]}", headers=auth_headers(alice))
    assert client.get("/health").json()["workspace_count"] == 1


def test_response_carries_request_id_and_timing(client):
    resp = client.get("/health")
    assert resp.headers["X-Request-ID"]
    assert resp.headers["X-Response-Time"].endswith("ms")


def test_incoming_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "trace-abc"})
    assert resp.headers["X-Request-ID"] == "trace-abc"


def test_error_responses_use_error_envelope(client, alice):
    body = client.get("/api/documents/999999", headers=auth_headers(alice)).json()
    assert body["error"] == "DOCUMENT_NOT_FOUND"
    assert "message" in body
