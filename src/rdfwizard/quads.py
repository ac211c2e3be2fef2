"""Lowering of tables to RDF quads — pure-library module.

Each table row becomes one blank-node entity ``s-<row>``:

* first ``(s-i, rdf:type, <subject>)``
* then ``(s-i, <mapping[j]>, "cell"^^xsd:string)`` for every column ``j``

Missing cells lower to ``""``, so every row yields exactly
``1 + width`` quads.  All quads go to the default graph.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, NamedTuple, Optional, Union

from rdflib import BNode, Literal, URIRef
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID
from rdflib.namespace import RDF, XSD

from rdfwizard.tabular import ParseResult
from rdfwizard.validation import is_namespace_uri, is_property_uri

logger = logging.getLogger(__name__)

DEFAULT_GRAPH = DATASET_DEFAULT_GRAPH_ID

ColumnMapping = tuple[str, ...]


def _node_id(term: Union[URIRef, BNode]) -> str:
    return f"_:{term}" if isinstance(term, BNode) else str(term)


def term_to_jsonld(term: Union[URIRef, BNode, Literal]) -> dict[str, Any]:
    """Expanded JSON-LD form of one rdflib object term."""
    if isinstance(term, Literal):
        value: dict[str, Any] = {"@value": str(term)}
        if term.language:
            value["@language"] = term.language
        else:
            value["@type"] = str(term.datatype or XSD.string)
        return value
    return {"@id": _node_id(term)}


class Quad(NamedTuple):
    """One RDF statement in the default graph."""

    subject: Union[BNode, URIRef]
    predicate: URIRef
    object: Union[URIRef, Literal]
    graph: URIRef = DEFAULT_GRAPH


def build_column_mapping(uris: Iterable[str]) -> Optional[ColumnMapping]:
    """Return the mapping only if *every* URI is a property URI."""
    mapping = tuple(uris)
    if all(is_property_uri(uri) for uri in mapping):
        return mapping
    return None


def namespace_mapping(namespace: str, fields: Optional[list[str]]) -> list[str]:
    """Auto-fill column URIs by appending each header to *namespace*."""
    if not is_namespace_uri(namespace):
        raise ValueError(f"Not a namespace URI: {namespace!r}")
    if fields is None:
        raise ValueError("Namespace auto-fill needs a header row")
    return [namespace + field for field in fields]


class QuadGenerator:
    """Restartable, lazy quad sequence over ``(table, subject, mapping)``.

    Every call to :func:`iter` starts from the first row again; nothing is
    cached between iterations.  URIs are used as given: callers validate
    them with :func:`build_column_mapping` and friends first.
    """

    def __init__(
        self,
        table: ParseResult,
        subject_uri: str,
        mapping: Iterable[str],
    ) -> None:
        mapping = tuple(mapping)
        if not table.ok:
            raise ValueError("Cannot generate quads from a table with parse errors")
        self.table = table
        self.subject_uri = subject_uri
        self.mapping: ColumnMapping = mapping

    def __len__(self) -> int:
        return len(self.table.rows) * (1 + len(self.mapping))

    def __iter__(self) -> Iterator[Quad]:
        class_term = URIRef(self.subject_uri)
        property_terms = [URIRef(uri) for uri in self.mapping]
        for i in range(len(self.table.rows)):
            entity = BNode(f"s-{i}")
            yield Quad(entity, RDF.type, class_term)
            for j, predicate in enumerate(property_terms):
                value = self.table.cell(i, j)
                yield Quad(entity, predicate, Literal(value or "", datatype=XSD.string))


def generate_quads(
    table: ParseResult, subject_uri: str, mapping: Iterable[str],
) -> Iterator[Quad]:
    """Yield the quads for *table* (see :class:`QuadGenerator`)."""
    yield from QuadGenerator(table, subject_uri, mapping)


def quads_to_jsonld(quads: Iterable[Quad]) -> list[dict[str, Any]]:
    """Group *quads* into an expanded JSON-LD document.

    One node object per subject, in order of first appearance; named
    graphs become ``@graph`` containers.  ``rdf:type`` objects go under
    ``@type``.
    """
    graphs: dict[str, dict[str, dict[str, Any]]] = {}
    for quad in quads:
        graph_id = "" if quad.graph == DEFAULT_GRAPH else _node_id(quad.graph)
        nodes = graphs.setdefault(graph_id, {})
        subject_id = _node_id(quad.subject)
        node = nodes.setdefault(subject_id, {"@id": subject_id})
        if quad.predicate == RDF.type and not isinstance(quad.object, Literal):
            node.setdefault("@type", []).append(_node_id(quad.object))
        else:
            node.setdefault(str(quad.predicate), []).append(term_to_jsonld(quad.object))

    document = list(graphs.pop("", {}).values())
    for graph_id, nodes in graphs.items():
        document.append({"@id": graph_id, "@graph": list(nodes.values())})
    return document
