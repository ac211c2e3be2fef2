"""Read schema labels back from N-Quads / N-Triples.

The input is the canonical output of a schema export: ``ul:label`` nodes
with a ``ul:key`` and a ``ul:value`` type node, whose ``rdf:type`` selects
the variant.  The triples are checked against the schema-of-schemas
document (the node types and predicates it declares) before decoding.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Any, Optional, Union

from rdflib import Dataset, Graph, Namespace, URIRef
from rdflib.namespace import RDF

from rdfwizard.schema import (
    Component,
    CoproductType,
    Label,
    LiteralType,
    Option,
    ProductType,
    ReferenceType,
    SchemaType,
    UnitType,
    load_labels,
)

logger = logging.getLogger(__name__)

UL = Namespace("http://underlay.org/ns/")

ACCEPT = ".nq,application/n-quads,.nt,application/n-triples"


class SchemaImportError(ValueError):
    """The input could not be read as a schema."""


def format_for(filename: Optional[str]) -> str:
    """rdflib parser name for *filename*: ``nt`` for ``.nt``, else ``nquads``."""
    if filename and (
        PurePath(filename.lower()).suffix == ".nt"
        or filename.lower() == "application/n-triples"
    ):
        return "nt"
    return "nquads"


def _vocabulary(schema_schema: list[Label]) -> tuple[set[URIRef], set[URIRef]]:
    """Node types and predicates declared by the schema-of-schemas."""
    types: set[URIRef] = set()
    predicates: set[URIRef] = {RDF.type}
    for label in schema_schema:
        if isinstance(label.value, CoproductType):
            continue
        types.add(URIRef(label.key))
        if isinstance(label.value, ProductType):
            predicates.update(URIRef(c.key) for c in label.value.components)
    return types, predicates


def _load_graph(text: str, format: str) -> Graph:
    graph = Graph()
    if not text.strip():
        return graph
    try:
        if format == "nquads":
            dataset = Dataset()
            dataset.parse(data=text, format="nquads")
            for s, p, o, _ in dataset.quads((None, None, None, None)):
                graph.add((s, p, o))
        else:
            graph.parse(data=text, format="nt")
    except Exception as exc:
        raise SchemaImportError(f"Could not parse {format} input: {exc}") from exc
    return graph


def _check_vocabulary(graph: Graph, schema_schema: list[Label]) -> None:
    types, predicates = _vocabulary(schema_schema)
    for _, p, o in graph:
        if p not in predicates:
            raise SchemaImportError(f"Unexpected predicate <{p}>")
        if p == RDF.type and o not in types:
            raise SchemaImportError(f"Unexpected node type <{o}>")


class _Decoder:
    def __init__(self, graph: Graph, label_ids: dict[Any, str]) -> None:
        self.graph = graph
        self.label_ids = label_ids

    def required(self, node: Any, predicate: URIRef) -> Any:
        value = self.graph.value(node, predicate)
        if value is None:
            raise SchemaImportError(f"Node {node} has no <{predicate}>")
        return value

    def members(self, node: Any, predicate: URIRef, model: type, path: tuple) -> list:
        members = [
            model(
                key=str(self.required(member, UL.key)),
                value=self.decode(self.required(member, UL.value), path),
            )
            for member in self.graph.objects(node, predicate)
        ]
        return sorted(members, key=lambda m: m.key)

    def decode(self, node: Any, path: tuple = ()) -> SchemaType:
        if node in path:
            raise SchemaImportError("Type nodes form a cycle")
        path = path + (node,)
        kind = self.required(node, RDF.type)
        if kind == UL.unit:
            return UnitType()
        if kind == UL.literal:
            return LiteralType(datatype=str(self.required(node, UL.datatype)))
        if kind == UL.product:
            return ProductType(components=self.members(node, UL.components, Component, path))
        if kind == UL.coproduct:
            return CoproductType(options=self.members(node, UL.options, Option, path))
        if kind == UL.reference:
            target = self.required(node, UL.value)
            if target not in self.label_ids:
                raise SchemaImportError(f"Reference to unknown label {target}")
            return ReferenceType(value=self.label_ids[target])
        raise SchemaImportError(f"Unknown type node <{kind}>")


def parse_schema_string(
    text: str,
    schema_schema: Union[list[Label], dict[str, Any]],
    format: str = "nquads",
) -> list[Label]:
    """Decode the labels serialized in *text*.

    Args:
        text: N-Quads or N-Triples source
        schema_schema: Labels (or a ``{"@graph": ...}`` document) that
            declare the allowed node types and predicates
        format: ``"nquads"`` or ``"nt"``

    Returns:
        Labels sorted by key, with ids ``_:l0``, ``_:l1``, ...
    """
    if isinstance(schema_schema, dict):
        schema_schema = load_labels(schema_schema)
    graph = _load_graph(text, format)
    _check_vocabulary(graph, schema_schema)

    nodes = list(graph.subjects(RDF.type, UL.label))
    keyed = []
    for node in nodes:
        key = graph.value(node, UL.key)
        if key is None:
            raise SchemaImportError(f"Label {node} has no key")
        keyed.append((str(key), node))
    keyed.sort(key=lambda item: item[0])

    label_ids = {node: f"_:l{index}" for index, (_, node) in enumerate(keyed)}
    decoder = _Decoder(graph, label_ids)
    labels = [
        Label(
            id=label_ids[node],
            key=key,
            value=decoder.decode(decoder.required(node, UL.value)),
        )
        for key, node in keyed
    ]
    logger.info("Imported %d labels", len(labels))
    return labels
