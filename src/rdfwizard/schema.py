"""Pydantic models for schema labels and their JSON-LD shape.

A schema is a set of *labels*.  Each label names one subject class
(``key``, a URI) and describes the shape of its values as a
:data:`SchemaType`, a closed union discriminated on ``type``:

* ``unit``: no content
* ``literal``: an RDF literal with a fixed ``datatype``
* ``product``: named, URI-keyed ``components``
* ``coproduct``: named, URI-keyed ``options``
* ``reference``: a pointer to another label by id

The models dump to exactly the JSON objects the JSON-LD context in
``data/context.jsonld`` expects, so ``{**context, "@graph": [...]}`` can
be normalized as-is.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from rdflib.namespace import XSD

XSD_STRING = str(XSD.string)

_FROZEN = ConfigDict(frozen=True)


class UnitType(BaseModel):
    """The type with exactly one (empty) value."""

    type: Literal["unit"] = "unit"

    model_config = _FROZEN


class LiteralType(BaseModel):
    """An RDF literal of a given datatype."""

    type: Literal["literal"] = "literal"
    datatype: str = XSD_STRING

    model_config = _FROZEN


class ReferenceType(BaseModel):
    """A reference to another label, by label id."""

    type: Literal["reference"] = "reference"
    value: str

    model_config = _FROZEN


class Component(BaseModel):
    """One named member of a product."""

    type: Literal["component"] = "component"
    key: str
    value: SchemaType

    model_config = _FROZEN


class Option(BaseModel):
    """One named alternative of a coproduct."""

    type: Literal["option"] = "option"
    key: str
    value: SchemaType

    model_config = _FROZEN


class ProductType(BaseModel):
    type: Literal["product"] = "product"
    components: list[Component] = Field(default_factory=list)

    model_config = _FROZEN


class CoproductType(BaseModel):
    type: Literal["coproduct"] = "coproduct"
    options: list[Option] = Field(default_factory=list)

    model_config = _FROZEN


SchemaType = Annotated[
    Union[UnitType, LiteralType, ProductType, CoproductType, ReferenceType],
    Field(discriminator="type"),
]


class Label(BaseModel):
    """A named, typed definition of one subject class."""

    id: Optional[str] = Field(None, description="Blank-node id, e.g. '_:l0'")
    type: Literal["label"] = "label"
    key: str = ""
    value: SchemaType = Field(default_factory=UnitType)

    model_config = _FROZEN

    def to_jsonld(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


for _model in (Component, Option, ProductType, CoproductType, Label):
    _model.model_rebuild()


class Ownership(str, Enum):
    """Whether a label set may be edited in place."""

    OWNED = "owned"
    IMPORTED = "imported"


class SchemaDocument(BaseModel):
    """A label set, its namespace, and who owns the label objects.

    Imported documents are deep-cloned on the way in and again before the
    first edit, so no edit ever reaches the source document.
    """

    labels: list[Label] = Field(default_factory=list)
    namespace: Optional[str] = None
    ownership: Ownership = Ownership.OWNED

    model_config = _FROZEN

    @classmethod
    def imported(
        cls, labels: list[Label], namespace: Optional[str] = None,
    ) -> SchemaDocument:
        return cls(
            labels=[label.model_copy(deep=True) for label in labels],
            namespace=namespace,
            ownership=Ownership.IMPORTED,
        )

    def owned(self) -> SchemaDocument:
        """Return an editable document (a deep clone if imported)."""
        if self.ownership is Ownership.OWNED:
            return self
        return SchemaDocument(
            labels=[label.model_copy(deep=True) for label in self.labels],
            namespace=self.namespace,
            ownership=Ownership.OWNED,
        )

    def with_labels(self, labels: list[Label]) -> SchemaDocument:
        return self.owned().model_copy(update={"labels": list(labels)})

    def with_namespace(self, namespace: Optional[str]) -> SchemaDocument:
        return self.owned().model_copy(update={"namespace": namespace})

    def label_ids(self) -> set[str]:
        return {label.id for label in self.labels if label.id is not None}

    def to_jsonld(self, context: dict[str, Any]) -> dict[str, Any]:
        """Build the JSON-LD document: the context plus the labels as ``@graph``.

        Keys are written relative to the namespace in the editor, so they
        are expanded here; ``namespace + key`` is what validation checks.
        """
        labels = expand_labels(self.labels, self.namespace)
        return {**context, "@graph": [label.to_jsonld() for label in labels]}


class LabelIdSequence:
    """Per-session generator of fresh ``_:l<n>`` label ids."""

    def __init__(self, prefix: str = "_:l") -> None:
        self.prefix = prefix
        self._next = 0

    def next_id(self, taken: Optional[set[str]] = None) -> str:
        taken = taken or set()
        while True:
            candidate = f"{self.prefix}{self._next}"
            self._next += 1
            if candidate not in taken:
                return candidate


def table_label(subject_uri: str, uris: list[str]) -> Label:
    """Describe a table as one label: a product of ``xsd:string`` columns."""
    return Label(
        key=subject_uri,
        value=ProductType(
            components=[
                Component(key=uri, value=LiteralType(datatype=XSD_STRING))
                for uri in uris
            ],
        ),
    )


def _rekey(labels: list[Label], rename: Callable[[str], str]) -> list[Label]:
    def walk(value: Any) -> Any:
        if isinstance(value, ProductType):
            return value.model_copy(update={"components": [
                c.model_copy(update={"key": rename(c.key), "value": walk(c.value)})
                for c in value.components
            ]})
        if isinstance(value, CoproductType):
            return value.model_copy(update={"options": [
                o.model_copy(update={"key": rename(o.key), "value": walk(o.value)})
                for o in value.options
            ]})
        return value

    return [
        label.model_copy(update={"key": rename(label.key), "value": walk(label.value)})
        for label in labels
    ]


def compact_labels(labels: list[Label], namespace: Optional[str]) -> list[Label]:
    """Strip *namespace* from label and member keys that start with it."""
    if not namespace:
        return list(labels)
    return _rekey(
        labels,
        lambda key: key[len(namespace):] if key.startswith(namespace) else key,
    )


def expand_labels(labels: list[Label], namespace: Optional[str]) -> list[Label]:
    """Prefix every label and member key with *namespace*."""
    if not namespace:
        return list(labels)
    return _rekey(labels, lambda key: namespace + key)


def load_labels(data: Any) -> list[Label]:
    """Validate a ``{"@graph": [...]}`` document or bare list into labels."""
    if isinstance(data, dict):
        data = data.get("@graph", [])
    if isinstance(data, dict):
        data = [data]
    return [Label.model_validate(item) for item in data]
