"""Tests for remote document fetching (network mocked)."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from rdfwizard.fetch import DataverseClient, DocumentFetcher

BASE = "https://dataverse.example.org"
PID = "doi:10.7910/DVN/A4BZU8/9ASKFB"


def _response(text="", payload=None):
    resp = MagicMock()
    resp.text = text
    resp.raise_for_status.return_value = None
    if payload is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http):
    return DataverseClient(DocumentFetcher(http, timeout=5.0), BASE + "/", api_token="secret")


class TestDocumentFetcher:
    """One-shot GETs that fail soft."""

    def test_text(self, http):
        http.get.return_value = _response("a,b\n")
        assert DocumentFetcher(http).fetch_text("https://x.org/f") == "a,b\n"
        http.get.assert_called_once_with(
            "https://x.org/f", params=None, headers=None, timeout=None,
        )

    def test_network_error(self, http):
        http.get.side_effect = requests.exceptions.ConnectionError("boom")
        assert DocumentFetcher(http).fetch_text("https://x.org/f") is None

    def test_http_error(self, http):
        resp = _response()
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        http.get.return_value = resp
        assert DocumentFetcher(http).fetch_json("https://x.org/f") is None

    def test_json(self, http):
        http.get.return_value = _response(payload={"ok": True})
        assert DocumentFetcher(http).fetch_json("https://x.org/f") == {"ok": True}

    def test_bad_json(self, http):
        http.get.return_value = _response("<html>")
        assert DocumentFetcher(http).fetch_json("https://x.org/f") is None


class TestDataverseClient:
    """Dataverse access API endpoints."""

    def test_dataset_id(self):
        assert DataverseClient.dataset_id(PID) == "doi:10.7910/DVN/A4BZU8"

    def test_datafile(self, client, http):
        http.get.return_value = _response("name\tage\n")
        assert client.fetch_datafile(PID) == "name\tage\n"
        http.get.assert_called_once_with(
            BASE + "/api/access/datafile/:persistentId/",
            params={"persistentId": PID},
            headers=None,
            timeout=5.0,
        )

    def test_dataset_metadata(self, client, http):
        http.get.return_value = _response(payload={"status": "OK"})
        assert client.fetch_dataset_metadata(PID) == {"status": "OK"}
        args, kwargs = http.get.call_args
        assert args[0] == BASE + "/api/datasets/:persistentId/versions/:latest"
        assert kwargs["params"] == {"persistentId": "doi:10.7910/DVN/A4BZU8"}

    def test_file_metadata(self, client, http):
        http.get.return_value = _response('{"label": "data.tsv"}')
        assert client.fetch_file_metadata(PID) == '{"label": "data.tsv"}'

    def test_provenance(self, client, http):
        prov = {"entity": {"ex:data": {}}}
        http.get.return_value = _response(payload={"data": {"json": json.dumps(prov)}})
        assert client.fetch_provenance(PID) == prov
        _, kwargs = http.get.call_args
        assert kwargs["headers"] == {"X-Dataverse-Key": "secret"}

    def test_provenance_object(self, client, http):
        http.get.return_value = _response(payload={"data": {"json": {"entity": {}}}})
        assert client.fetch_provenance(PID) == {"entity": {}}

    def test_provenance_missing(self, client, http):
        http.get.return_value = _response(payload={"status": "ERROR"})
        assert client.fetch_provenance(PID) is None

    def test_provenance_invalid(self, client, http):
        http.get.return_value = _response(payload={"data": {"json": "{not json"}})
        assert client.fetch_provenance(PID) is None

    def test_provenance_unavailable(self, client, http):
        http.get.side_effect = requests.exceptions.Timeout("slow")
        assert client.fetch_provenance(PID) is None

    def test_no_token(self, http):
        http.get.return_value = _response(payload={"data": {"json": "{}"}})
        DataverseClient(DocumentFetcher(http), BASE).fetch_provenance(PID)
        _, kwargs = http.get.call_args
        assert kwargs["headers"] is None
