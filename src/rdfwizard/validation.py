"""URI pattern checks and structural validation of schema labels.

Two families of checks live here:

* :func:`is_property_uri` / :func:`is_namespace_uri` are pure predicates
  over strings, used to gate every wizard step.
* :func:`find_error` / :func:`validate_labels` walk a label set and report
  the *first* problem with its kind (invalid key, duplicate key, invalid
  datatype, unknown reference, reference cycle).
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterator, Optional
from urllib.parse import quote

from rdfwizard.schema import (
    CoproductType,
    Label,
    LiteralType,
    ProductType,
    ReferenceType,
    SchemaType,
)

logger = logging.getLogger(__name__)

# A "//host" authority is matched whole and never counts as a path segment.
NAMESPACE_PATTERN = re.compile(
    r"^[a-z0-9]+:(?://[A-Za-z0-9-._:]+(?=/)|(?!//))(?:/[A-Za-z0-9-._:]*)*[A-Za-z0-9-._:]+(?:/|#)$"
)
PROPERTY_PATTERN = re.compile(
    r"^[a-z0-9]+:(?://[A-Za-z0-9-._:]+(?=/)|(?!//))(?:/[A-Za-z0-9-._:]*)*[A-Za-z0-9-._:]+(?:/|#)[A-Za-z0-9-._]+$"
)


def pattern_url(pattern: re.Pattern) -> str:
    """Link to a railroad diagram of *pattern*."""
    return "https://regexper.com/#" + quote(pattern.pattern, safe="")


def is_property_uri(value: str) -> bool:
    """True iff *value* names a property: ``scheme:/path(/|#)name``."""
    return PROPERTY_PATTERN.match(value) is not None


def is_namespace_uri(value: str) -> bool:
    """True iff *value* is a namespace: ``scheme:/path`` ending in ``/`` or ``#``."""
    return NAMESPACE_PATTERN.match(value) is not None


def validate_key(key: str, namespace: Optional[str]) -> bool:
    """Check a label or member key, resolving it against *namespace* if set."""
    if namespace is None:
        return is_property_uri(key)
    return is_namespace_uri(namespace) and is_property_uri(namespace + key)


class ErrorKind(str, Enum):
    INVALID_KEY = "invalid_key"
    DUPLICATE_KEY = "duplicate_key"
    INVALID_DATATYPE = "invalid_datatype"
    UNKNOWN_REFERENCE = "unknown_reference"
    CYCLE = "cycle"


class SchemaValidationError(ValueError):
    """The first problem found in a label set."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        label_id: Optional[str] = None,
        key: Optional[str] = None,
        path: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.label_id = label_id
        self.key = key
        self.path = path

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "label": self.label_id,
            "key": self.key,
            "path": list(self.path),
        }


def _members(value: SchemaType) -> list:
    if isinstance(value, ProductType):
        return value.components
    if isinstance(value, CoproductType):
        return value.options
    return []


def _references(value: SchemaType) -> Iterator[str]:
    """Yield every label id referenced anywhere inside *value*."""
    if isinstance(value, ReferenceType):
        yield value.value
    for member in _members(value):
        yield from _references(member.value)


def _type_error(
    value: SchemaType,
    namespace: Optional[str],
    label_ids: set[str],
    label: Label,
    path: tuple[str, ...],
) -> Optional[SchemaValidationError]:
    if isinstance(value, LiteralType):
        if not is_property_uri(value.datatype):
            return SchemaValidationError(
                ErrorKind.INVALID_DATATYPE,
                f"Invalid literal datatype {value.datatype!r}",
                label.id, label.key, path,
            )
        return None

    if isinstance(value, ReferenceType):
        if value.value not in label_ids:
            return SchemaValidationError(
                ErrorKind.UNKNOWN_REFERENCE,
                f"Reference to unknown label {value.value!r}",
                label.id, label.key, path,
            )
        return None

    seen: set[str] = set()
    for member in _members(value):
        member_path = path + (member.key,)
        if not validate_key(member.key, namespace):
            return SchemaValidationError(
                ErrorKind.INVALID_KEY,
                f"Invalid {member.type} key {member.key!r}",
                label.id, label.key, member_path,
            )
        if member.key in seen:
            return SchemaValidationError(
                ErrorKind.DUPLICATE_KEY,
                f"Duplicate {member.type} key {member.key!r}",
                label.id, label.key, member_path,
            )
        seen.add(member.key)
        error = _type_error(member.value, namespace, label_ids, label, member_path)
        if error is not None:
            return error
    return None


def _find_cycle(start: str, edges: dict[str, list[str]]) -> Optional[list[str]]:
    """Depth-first search for a reference path leading back into itself."""
    visited: set[str] = set()
    stack: list[str] = []

    def visit(node: str) -> Optional[list[str]]:
        if node in stack:
            return stack[stack.index(node):] + [node]
        if node in visited:
            return None
        visited.add(node)
        stack.append(node)
        for target in edges.get(node, []):
            cycle = visit(target)
            if cycle is not None:
                return cycle
        stack.pop()
        return None

    return visit(start)


def find_error(
    labels: list[Label], namespace: Optional[str] = None,
) -> Optional[SchemaValidationError]:
    """Return the first validation error in *labels*, or ``None``.

    Labels are checked in order; for each one the key, then key
    uniqueness, then the nested type, then reference cycles.
    """
    label_ids = {label.id for label in labels if label.id is not None}
    edges = {
        label.id: list(_references(label.value))
        for label in labels if label.id is not None
    }
    keys: set[str] = set()

    for label in labels:
        if not validate_key(label.key, namespace):
            return SchemaValidationError(
                ErrorKind.INVALID_KEY,
                f"Invalid label key {label.key!r}",
                label.id, label.key,
            )
        if label.key in keys:
            return SchemaValidationError(
                ErrorKind.DUPLICATE_KEY,
                f"Duplicate label key {label.key!r}",
                label.id, label.key,
            )
        keys.add(label.key)

        error = _type_error(label.value, namespace, label_ids, label, ())
        if error is not None:
            return error

        if label.id is not None:
            cycle = _find_cycle(label.id, edges)
            if cycle is not None:
                return SchemaValidationError(
                    ErrorKind.CYCLE,
                    "Reference cycle: " + " -> ".join(cycle),
                    label.id, label.key, tuple(cycle),
                )
    return None


def validate_labels(labels: list[Label], namespace: Optional[str] = None) -> None:
    """Raise :class:`SchemaValidationError` for the first problem in *labels*."""
    error = find_error(labels, namespace)
    if error is not None:
        logger.debug("Schema validation failed: %s", error)
        raise error
