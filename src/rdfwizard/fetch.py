"""Remote document fetching — pure-library module (no Flask dependency).

Every fetch is one-shot: no retries, and no timeout unless one is
configured.  A failed fetch returns ``None`` and logs a warning, so
callers cannot tell "unavailable" from "not loaded yet" and never treat
partial data as valid.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_DATAVERSE_URL = "https://dataverse.harvard.edu"
DEFAULT_PERSISTENT_ID = "doi:10.7910/DVN/A4BZU8/9ASKFB"


class DocumentFetcher:
    """GET text or JSON resources with :mod:`requests`."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(
        self,
        url: str,
        params: Optional[dict[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[requests.Response]:
        try:
            resp = self.session.get(
                url, params=params, headers=headers, timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.warning("Fetch of %s failed: %s", url, exc)
            return None
        return resp

    def fetch_text(
        self,
        url: str,
        params: Optional[dict[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[str]:
        resp = self._get(url, params=params, headers=headers)
        return None if resp is None else resp.text

    def fetch_json(
        self,
        url: str,
        params: Optional[dict[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        resp = self._get(url, params=params, headers=headers)
        if resp is None:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("Response from %s is not JSON: %s", url, exc)
            return None


class DataverseClient:
    """Read data files and their metadata from a Dataverse installation."""

    def __init__(
        self,
        fetcher: Optional[DocumentFetcher] = None,
        base_url: str = DEFAULT_DATAVERSE_URL,
        api_token: Optional[str] = None,
    ) -> None:
        self.fetcher = fetcher or DocumentFetcher()
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token

    @staticmethod
    def dataset_id(persistent_id: str) -> str:
        """Dataset PID of a file PID (the file PID minus its last segment)."""
        return persistent_id.rsplit("/", 1)[0]

    def fetch_datafile(self, persistent_id: str) -> Optional[str]:
        """Raw contents of a data file."""
        return self.fetcher.fetch_text(
            f"{self.base_url}/api/access/datafile/:persistentId/",
            params={"persistentId": persistent_id},
        )

    def fetch_dataset_metadata(self, persistent_id: str) -> Optional[Any]:
        """Latest version metadata of the dataset holding a file."""
        return self.fetcher.fetch_json(
            f"{self.base_url}/api/datasets/:persistentId/versions/:latest",
            params={"persistentId": self.dataset_id(persistent_id)},
        )

    def fetch_file_metadata(self, persistent_id: str) -> Optional[str]:
        return self.fetcher.fetch_text(
            f"{self.base_url}/api/files/:persistentId/metadata",
            params={"persistentId": persistent_id},
        )

    def fetch_provenance(self, persistent_id: str) -> Optional[dict[str, Any]]:
        """PROV-JSON attached to a file, decoded; needs an API token."""
        headers = {"X-Dataverse-Key": self.api_token} if self.api_token else None
        payload = self.fetcher.fetch_json(
            f"{self.base_url}/api/files/:persistentId/prov-json/",
            params={"persistentId": persistent_id},
            headers=headers,
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        if not data or "json" not in data:
            logger.info("No provenance data for %s", persistent_id)
            return None
        prov = data["json"]
        if isinstance(prov, str):
            try:
                prov = json.loads(prov)
            except json.JSONDecodeError as exc:
                logger.warning("Invalid provenance JSON for %s: %s", persistent_id, exc)
                return None
        return prov if isinstance(prov, dict) else None
