"""Fixtures for backend tests."""

from __future__ import annotations

import pytest

from rdfwizard.backend.app import create_app
from rdfwizard.backend.config import TestConfig

NS = "http://example.com/ns/"
PEOPLE = "name,age\nAlice,30\nBob,25\n"


@pytest.fixture()
def app():
    """Create a test Flask application."""
    application = create_app(TestConfig)
    yield application
    application.config["TABLE_SESSIONS"].close_all()
    application.config["SCHEMA_SESSIONS"].close_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def downloads(app):
    """Direct access to the DownloadRegistry instance."""
    return app.config["DOWNLOADS"]


@pytest.fixture()
def table_id(client):
    """A table session with source, subject and columns filled in."""
    session_id = client.post("/api/tables/", json={}).get_json()["id"]
    client.put(f"/api/tables/{session_id}/source", json={"text": PEOPLE, "filename": "people.csv"})
    client.put(f"/api/tables/{session_id}/subject", json={"uri": NS + "Person"})
    client.put(f"/api/tables/{session_id}/columns", json={"namespace": NS})
    return session_id


@pytest.fixture()
def schema_id(client):
    """A schema editor session on the default namespace."""
    return client.post("/api/schemas/", json={}).get_json()["id"]
