"""Wizard session state for the table-import and schema-editor flows.

Sessions are driven one event at a time (an edit, a finished fetch, an
export request).  Every setter recomputes the derived values from scratch
and replaces them wholesale, and every edit releases the session's live
downloads, so a download never describes stale inputs.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Generic, Optional, TypeVar, Union

from rdfwizard.export import (
    DATA_FILENAME,
    SCHEMA_FILENAME,
    CanonicalExporter,
    Download,
    DownloadRegistry,
    ExportSlot,
    load_example_schema,
    load_schema_schema,
)
from rdfwizard.fetch import DataverseClient
from rdfwizard.importer import format_for, parse_schema_string
from rdfwizard.quads import ColumnMapping, build_column_mapping, namespace_mapping
from rdfwizard.schema import (
    Label,
    LabelIdSequence,
    Ownership,
    SchemaDocument,
    compact_labels,
    load_labels,
)
from rdfwizard.tabular import PREVIEW_LINES, ParseResult, delimiter_for, parse_table
from rdfwizard.validation import (
    SchemaValidationError,
    find_error,
    is_namespace_uri,
    is_property_uri,
)

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "http://example.com/ns/"
EXAMPLE_NAMESPACE = "http://example.com/ns/"


class WizardStateError(RuntimeError):
    """An operation was requested before its inputs validate."""


class ImportSession:
    """Table import: source → header → subject type → column URIs → export."""

    def __init__(
        self,
        exporter: CanonicalExporter,
        registry: DownloadRegistry,
        header: bool = True,
    ) -> None:
        self.exporter = exporter
        self.text: Optional[str] = None
        self.filename: Optional[str] = None
        self.header = header
        self.subject_uri = ""
        self.column_uris: list[str] = []
        self.persistent_id: Optional[str] = None
        self.provenance: Optional[dict[str, Any]] = None
        self.dataset_metadata: Optional[Any] = None
        self.file_metadata: Optional[str] = None
        self.table: Optional[ParseResult] = None
        self._slots = {
            "schema": ExportSlot(registry, SCHEMA_FILENAME),
            "data": ExportSlot(registry, DATA_FILENAME),
        }

    # ── inputs ────────────────────────────────────────────────────

    def set_source(self, text: Optional[str], filename: Optional[str] = None) -> None:
        self.text = text
        self.filename = filename
        self._reparse()

    def set_header(self, header: bool) -> None:
        self.header = header
        self._reparse()

    def load_from_dataverse(self, client: DataverseClient, persistent_id: str) -> bool:
        """Fetch the source text, metadata and provenance of a Dataverse file.

        Returns False (and leaves the source unavailable) if the file
        could not be fetched.
        """
        self.persistent_id = persistent_id
        self.provenance = client.fetch_provenance(persistent_id)
        self.dataset_metadata = client.fetch_dataset_metadata(persistent_id)
        self.file_metadata = client.fetch_file_metadata(persistent_id)
        text = client.fetch_datafile(persistent_id)
        self.set_source(text)
        return text is not None

    def set_subject(self, uri: str) -> None:
        self.subject_uri = uri
        self._release()

    def set_column(self, index: int, uri: str) -> None:
        if not 0 <= index < len(self.column_uris):
            raise IndexError(f"No column {index}")
        uris = list(self.column_uris)
        uris[index] = uri
        self.column_uris = uris
        self._release()

    def set_columns(self, uris: list[str]) -> None:
        if len(uris) != len(self.column_uris):
            raise ValueError(
                f"Expected {len(self.column_uris)} column URIs, got {len(uris)}"
            )
        self.column_uris = list(uris)
        self._release()

    def autofill(self, namespace: str) -> None:
        """Name every column by appending its header to *namespace*."""
        if self.table is None:
            raise WizardStateError("No table loaded")
        self.set_columns(namespace_mapping(namespace, self.table.fields))

    def _reparse(self) -> None:
        old_width = self.table.width if self.table is not None else None
        if self.text is None:
            self.table = None
        else:
            self.table = parse_table(self.text, self.header, delimiter_for(self.filename))
        new_width = self.table.width if self.table is not None else None
        if new_width != old_width:
            self.column_uris = [""] * (new_width or 0)
        self._release()

    # ── derived values ────────────────────────────────────────────

    @property
    def table_ok(self) -> bool:
        return self.table is not None and self.table.ok

    @property
    def subject_ok(self) -> bool:
        return is_property_uri(self.subject_uri)

    @property
    def mapping(self) -> Optional[ColumnMapping]:
        """Column URIs, or ``None`` unless every one is a property URI."""
        if not self.table_ok or not self.column_uris:
            return None
        return build_column_mapping(self.column_uris)

    def steps(self) -> dict[str, bool]:
        """Which wizard steps may be shown; each needs all earlier ones."""
        columns = self.table_ok and self.subject_ok
        return {
            "preview": self.table is not None,
            "subject": self.table_ok,
            "columns": columns,
            "export": columns and self.mapping is not None,
        }

    # ── export ────────────────────────────────────────────────────

    def export(self) -> dict[str, Download]:
        """Canonicalize data and schema and mint fresh download handles."""
        if not self.steps()["export"]:
            raise WizardStateError("Table, subject URI and column URIs must all validate")
        result = self.exporter.export_table(self.table, self.subject_uri, self.mapping)
        return {
            "schema": self._slots["schema"].replace(result.schema),
            "data": self._slots["data"].replace(result.data),
        }

    @property
    def downloads(self) -> dict[str, Download]:
        return {
            name: slot.current
            for name, slot in self._slots.items() if slot.current is not None
        }

    def _release(self) -> None:
        for slot in self._slots.values():
            slot.release()

    def close(self) -> None:
        self._release()

    def state(self, preview_rows: int = PREVIEW_LINES) -> dict[str, Any]:
        table = self.table
        width = table.width if table is not None else 0
        return {
            "steps": self.steps(),
            "header": self.header,
            "filename": self.filename,
            "persistent_id": self.persistent_id,
            "provenance": self.provenance,
            "metadata": {"dataset": self.dataset_metadata, "file": self.file_metadata},
            "table": None if table is None else {
                "fields": table.fields,
                "width": width,
                "row_count": len(table.rows),
                "delimiter": table.delimiter,
                "preview": table.preview(preview_rows),
                "errors": [e.model_dump() for e in table.errors],
            },
            "subject": {"uri": self.subject_uri, "valid": self.subject_ok},
            "columns": [
                {
                    "label": table.label(j) if table is not None else None,
                    "uri": uri,
                    "valid": is_property_uri(uri),
                }
                for j, uri in enumerate(self.column_uris)
            ],
            "downloads": {k: d.describe() for k, d in self.downloads.items()},
        }


ExportOutcome = Union[Download, SchemaValidationError]


class EditorSession:
    """Schema editor: a label set under an optional namespace."""

    def __init__(
        self,
        exporter: CanonicalExporter,
        registry: DownloadRegistry,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
    ) -> None:
        self.exporter = exporter
        self.document = SchemaDocument(namespace=namespace)
        self.ids = LabelIdSequence()
        self.export_state: Optional[ExportOutcome] = None
        self._slot = ExportSlot(registry, SCHEMA_FILENAME)

    @property
    def labels(self) -> list[Label]:
        return self.document.labels

    @property
    def namespace(self) -> Optional[str]:
        return self.document.namespace

    @property
    def is_import(self) -> bool:
        return self.document.ownership is Ownership.IMPORTED

    def _replace(self, document: SchemaDocument) -> None:
        self.document = document
        self._slot.release()
        self.export_state = None

    # ── editing ───────────────────────────────────────────────────

    def set_namespace(self, namespace: Optional[str]) -> None:
        self._replace(self.document.with_namespace(namespace))

    def add_label(self) -> Label:
        document = self.document.owned()
        label = Label(id=self.ids.next_id(document.label_ids()))
        self._replace(document.with_labels(document.labels + [label]))
        return label

    def update_label(self, index: int, label: Label) -> Label:
        document = self.document.owned()
        labels = list(document.labels)
        label = label.model_copy(update={"id": labels[index].id})
        labels[index] = label
        self._replace(document.with_labels(labels))
        return label

    def remove_label(self, index: int) -> Label:
        document = self.document.owned()
        labels = list(document.labels)
        removed = labels.pop(index)
        self._replace(document.with_labels(labels))
        return removed

    # ── import ────────────────────────────────────────────────────

    def import_schema(self, text: str, filename: Optional[str] = None) -> None:
        labels = parse_schema_string(text, load_schema_schema(), format_for(filename))
        logger.info("Imported schema from %s", filename or "text")
        self._import(labels, None)

    def load_example(self) -> None:
        self._import(load_labels(load_example_schema()), EXAMPLE_NAMESPACE)

    def _import(self, labels: list[Label], namespace: Optional[str]) -> None:
        labels = compact_labels(labels, namespace)
        self._replace(SchemaDocument.imported(labels, namespace))

    # ── export ────────────────────────────────────────────────────

    def find_error(self) -> Optional[SchemaValidationError]:
        return find_error(self.labels, self.namespace)

    def export(self) -> ExportOutcome:
        """Export the schema; a validation failure is returned, not raised."""
        self._slot.release()
        try:
            normalized = self.exporter.export_schema(self.document)
        except SchemaValidationError as error:
            self.export_state = error
        else:
            self.export_state = self._slot.replace(normalized)
        return self.export_state

    def close(self) -> None:
        self._slot.release()
        self.export_state = None

    def state(self) -> dict[str, Any]:
        if isinstance(self.export_state, Download):
            export = {"download": self.export_state.describe()}
        elif isinstance(self.export_state, SchemaValidationError):
            export = {"error": self.export_state.to_dict()}
        else:
            export = None
        return {
            "namespace": self.namespace,
            "namespace_valid": self.namespace is None or is_namespace_uri(self.namespace),
            "ownership": self.document.ownership.value,
            "labels": [label.to_jsonld() for label in self.labels],
            "export": export,
        }


S = TypeVar("S", ImportSession, EditorSession)


class SessionStore(Generic[S]):
    """In-memory sessions keyed by random id."""

    def __init__(self) -> None:
        self._sessions: dict[str, S] = {}

    def create(self, session: S) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> Optional[S]:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
