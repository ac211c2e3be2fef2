"""Session management service — thin Flask wrapper.

All wizard logic lives in :mod:`rdfwizard.session`.  This service binds
sessions to the application's exporter, download registry and stores.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from rdfwizard.export import CanonicalExporter, Download, DownloadRegistry
from rdfwizard.session import EditorSession, ImportSession, SessionStore


class SessionService:
    """Create, look up and close wizard sessions for one application."""

    def __init__(self, config: Mapping[str, Any]) -> None:
        self.config = config
        self.exporter: CanonicalExporter = config["EXPORTER"]
        self.registry: DownloadRegistry = config["DOWNLOADS"]
        self.tables: SessionStore[ImportSession] = config["TABLE_SESSIONS"]
        self.schemas: SessionStore[EditorSession] = config["SCHEMA_SESSIONS"]

    # ── table import ──────────────────────────────────────────────

    def create_table_session(self, header: bool = True) -> tuple[str, ImportSession]:
        session = ImportSession(self.exporter, self.registry, header=header)
        return self.tables.create(session), session

    def get_table_session(self, session_id: str) -> Optional[ImportSession]:
        return self.tables.get(session_id)

    def close_table_session(self, session_id: str) -> bool:
        return self.tables.close(session_id)

    # ── schema editor ─────────────────────────────────────────────

    def create_schema_session(
        self, namespace: Optional[str],
    ) -> tuple[str, EditorSession]:
        session = EditorSession(self.exporter, self.registry, namespace=namespace)
        return self.schemas.create(session), session

    def get_schema_session(self, session_id: str) -> Optional[EditorSession]:
        return self.schemas.get(session_id)

    def close_schema_session(self, session_id: str) -> bool:
        return self.schemas.close(session_id)

    # ── downloads ─────────────────────────────────────────────────

    def get_download(self, handle: str) -> Optional[Download]:
        return self.registry.get(handle)
