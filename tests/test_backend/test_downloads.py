"""Tests for download routes."""

from __future__ import annotations

NS = "http://example.com/ns/"


def test_download(client, table_id):
    links = client.post(f"/api/tables/{table_id}/export").get_json()

    resp = client.get(links["data"]["url"])
    assert resp.status_code == 200
    assert resp.mimetype == "application/n-quads"
    assert "attachment" in resp.headers["Content-Disposition"]
    assert "assertion.nq" in resp.headers["Content-Disposition"]
    lines = resp.data.decode("utf-8").splitlines()
    assert len(lines) == 6
    assert any('"Alice"' in line for line in lines)


def test_idempotent_export(client, table_id):
    first = client.post(f"/api/tables/{table_id}/export").get_json()
    first_data = client.get(first["data"]["url"]).data
    second = client.post(f"/api/tables/{table_id}/export").get_json()
    assert client.get(second["data"]["url"]).data == first_data


def test_reexport_revokes(client, table_id):
    first = client.post(f"/api/tables/{table_id}/export").get_json()
    client.post(f"/api/tables/{table_id}/export")
    assert client.get(first["data"]["url"]).status_code == 404
    assert client.get(first["schema"]["url"]).status_code == 404


def test_edit_revokes(client, table_id):
    links = client.post(f"/api/tables/{table_id}/export").get_json()
    client.put(f"/api/tables/{table_id}/subject", json={"uri": NS + "Human"})
    resp = client.get(links["data"]["url"])
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_unknown_handle(client):
    assert client.get("/api/downloads/nonexistent").status_code == 404
