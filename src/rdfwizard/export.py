"""Canonical N-Quads export and downloadable byte streams.

Canonicalization itself is delegated to :mod:`pyld`:

* quads are grouped into an expanded JSON-LD document and passed to
  ``jsonld.normalize`` with the URDNA2015 algorithm;
* JSON-LD documents (schemas) are passed to ``jsonld.normalize`` directly,
  with the namespace as ``base`` when one is set.

This module only assembles the input documents, picks the options and
wraps the resulting strings as :class:`Download` objects.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict
from pyld import jsonld

from rdfwizard.quads import Quad, QuadGenerator, quads_to_jsonld
from rdfwizard.schema import SchemaDocument, table_label
from rdfwizard.tabular import ParseResult
from rdfwizard.validation import validate_labels

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

ALGORITHM = "URDNA2015"
NQUADS = "application/n-quads"

DATA_FILENAME = "assertion.nq"
SCHEMA_FILENAME = "schema.nq"


@lru_cache(maxsize=None)
def _read_json(name: str) -> Any:
    with open(DATA_DIR / name, encoding="utf-8") as f:
        return json.load(f)


def load_context() -> dict[str, Any]:
    """Return a copy of the bundled ``@context`` document."""
    return copy.deepcopy(_read_json("context.jsonld"))


def load_schema_schema() -> dict[str, Any]:
    """Return a copy of the schema-of-schemas document."""
    return copy.deepcopy(_read_json("schema.schema.jsonld"))


def load_example_schema() -> dict[str, Any]:
    return copy.deepcopy(_read_json("example.schema.jsonld"))


def normalize_options(namespace: Optional[str] = None) -> dict[str, str]:
    """Options for ``jsonld.normalize``; *namespace* becomes the base IRI."""
    options = {"algorithm": ALGORITHM, "format": NQUADS}
    if namespace is not None:
        options["base"] = namespace
    return options


class TableExport(NamedTuple):
    data: str
    schema: str


class CanonicalExporter:
    """Turn quads and schema documents into canonical N-Quads strings."""

    def __init__(self, context: Optional[dict[str, Any]] = None) -> None:
        self.context = context if context is not None else load_context()

    def canonize_quads(self, quads: Iterable[Quad]) -> str:
        """Canonicalize *quads* with URDNA2015.

        The quads go to the normalizer as expanded JSON-LD, so cell text
        reaches it as plain string values and is never re-parsed.
        """
        return jsonld.normalize(quads_to_jsonld(quads), normalize_options())

    def normalize_document(
        self, doc: dict[str, Any], namespace: Optional[str] = None,
    ) -> str:
        """Normalize a JSON-LD document to canonical N-Quads."""
        return jsonld.normalize(doc, normalize_options(namespace))

    def schema_document(self, document: SchemaDocument) -> dict[str, Any]:
        return document.to_jsonld(self.context)

    def table_schema_document(
        self, subject_uri: str, mapping: Iterable[str],
    ) -> dict[str, Any]:
        """The single-label schema describing rows of ``subject_uri``."""
        label = table_label(subject_uri, list(mapping))
        return {**self.context, "@graph": [label.to_jsonld()]}

    def export_table(
        self, table: ParseResult, subject_uri: str, mapping: Iterable[str],
    ) -> TableExport:
        """Canonical data and schema for a mapped table."""
        generator = QuadGenerator(table, subject_uri, mapping)
        data = self.canonize_quads(generator)
        schema = self.normalize_document(
            self.table_schema_document(subject_uri, generator.mapping),
        )
        logger.info(
            "Exported %d rows as %d quads", len(table.rows), len(generator),
        )
        return TableExport(data=data, schema=schema)

    def export_schema(self, document: SchemaDocument) -> str:
        """Validate and normalize a label set."""
        validate_labels(document.labels, document.namespace)
        normalized = self.normalize_document(
            self.schema_document(document), document.namespace,
        )
        logger.info("Exported schema with %d labels", len(document.labels))
        return normalized


# ── Downloads ─────────────────────────────────────────────────────


class Download(BaseModel):
    """A downloadable byte stream with a suggested file name."""

    handle: str
    filename: str
    media_type: str = NQUADS
    content: bytes

    model_config = ConfigDict(frozen=True)

    def describe(self) -> dict[str, Any]:
        return {
            "handle": self.handle,
            "filename": self.filename,
            "media_type": self.media_type,
            "size": len(self.content),
        }


class DownloadRegistry:
    """Live download handles, keyed by opaque id."""

    def __init__(self) -> None:
        self._store: dict[str, Download] = {}

    def mint(self, content: str, filename: str, media_type: str = NQUADS) -> Download:
        download = Download(
            handle=uuid.uuid4().hex,
            filename=filename,
            media_type=media_type,
            content=content.encode("utf-8"),
        )
        self._store[download.handle] = download
        return download

    def get(self, handle: str) -> Optional[Download]:
        return self._store.get(handle)

    def revoke(self, handle: str) -> bool:
        return self._store.pop(handle, None) is not None

    def __len__(self) -> int:
        return len(self._store)


class ExportSlot:
    """Holds at most one live download; replacing revokes the old one first."""

    def __init__(self, registry: DownloadRegistry, filename: str) -> None:
        self.registry = registry
        self.filename = filename
        self.current: Optional[Download] = None

    def replace(self, content: str) -> Download:
        self.release()
        self.current = self.registry.mint(content, self.filename)
        return self.current

    def release(self) -> None:
        if self.current is not None:
            self.registry.revoke(self.current.handle)
            self.current = None
