"""Tests for URI patterns and schema label validation."""

import pytest

from rdfwizard.schema import (
    Component,
    CoproductType,
    Label,
    LiteralType,
    Option,
    ProductType,
    ReferenceType,
    UnitType,
)
from rdfwizard.validation import (
    PROPERTY_PATTERN,
    ErrorKind,
    SchemaValidationError,
    find_error,
    is_namespace_uri,
    is_property_uri,
    pattern_url,
    validate_key,
    validate_labels,
)

NS = "http://example.com/ns/"


class TestURIPatterns:
    """Property and namespace URI predicates."""

    def test_documented_examples(self):
        assert not is_property_uri("http://example.com/foo")
        assert is_property_uri("http://example.com/foo#bar")
        assert not is_namespace_uri("http://example.com/foo#bar")
        assert is_namespace_uri("http://example.com/ns/")

    @pytest.mark.parametrize(
        "uri",
        [
            "http://example.com/ns/name",
            "http://www.w3.org/2001/XMLSchema#string",
            "https://schema.org/v1/Person",
            "http://localhost:8080/ns/age",
            "urn:example/name",
        ],
    )
    def test_property_uris(self, uri):
        assert is_property_uri(uri)
        assert not is_namespace_uri(uri)

    @pytest.mark.parametrize(
        "uri",
        [
            "",
            "example.com/ns/name",
            "HTTP://example.com/ns/name",
            "http://example.com/ns/",
            "http://example.com/ns#",
            "http://example.com/ns/na me",
        ],
    )
    def test_not_property_uris(self, uri):
        assert not is_property_uri(uri)

    def test_fragment_namespace(self):
        assert is_namespace_uri("http://ex.com/Person#")
        assert not is_property_uri("http://ex.com/Person#")

    def test_pattern_url(self):
        url = pattern_url(PROPERTY_PATTERN)
        assert url.startswith("https://regexper.com/#")
        assert "%5E" in url


class TestValidateKey:
    """Keys with and without a namespace."""

    def test_without_namespace(self):
        assert validate_key("http://example.com/ns/name", None)
        assert not validate_key("name", None)

    def test_with_namespace(self):
        assert validate_key("name", NS)
        assert not validate_key("", NS)
        assert not validate_key("na/me/", NS)

    def test_invalid_namespace(self):
        assert not validate_key("name", "not a namespace")


def _person(**kwargs):
    defaults = {
        "id": "_:l0",
        "key": "http://example.com/ns/Person",
        "value": ProductType(components=[
            Component(key="http://example.com/ns/name", value=LiteralType()),
        ]),
    }
    defaults.update(kwargs)
    return Label(**defaults)


class TestFindError:
    """Structural validation of label sets."""

    def test_valid(self):
        assert find_error([_person()]) is None
        validate_labels([_person()])

    def test_empty(self):
        assert find_error([]) is None

    def test_invalid_key(self):
        error = find_error([_person(key="Person")])
        assert error.kind is ErrorKind.INVALID_KEY
        assert error.label_id == "_:l0"

    def test_duplicate_label_key(self):
        labels = [
            Label(id="_:l0", key="http://example.com/ns/Person"),
            Label(id="_:l1", key="http://example.com/ns/Person"),
        ]
        error = find_error(labels)
        assert error.kind is ErrorKind.DUPLICATE_KEY
        assert error.label_id == "_:l1"
        with pytest.raises(SchemaValidationError) as info:
            validate_labels(labels)
        assert info.value.kind is ErrorKind.DUPLICATE_KEY

    def test_duplicate_component_key(self):
        value = ProductType(components=[
            Component(key="http://example.com/ns/name", value=UnitType()),
            Component(key="http://example.com/ns/name", value=LiteralType()),
        ])
        error = find_error([_person(value=value)])
        assert error.kind is ErrorKind.DUPLICATE_KEY
        assert error.path == ("http://example.com/ns/name",)

    def test_invalid_component_key(self):
        value = ProductType(components=[Component(key="name", value=UnitType())])
        assert find_error([_person(value=value)]).kind is ErrorKind.INVALID_KEY

    def test_invalid_datatype(self):
        value = ProductType(components=[
            Component(key="http://example.com/ns/age", value=LiteralType(datatype="integer")),
        ])
        error = find_error([_person(value=value)])
        assert error.kind is ErrorKind.INVALID_DATATYPE
        assert error.path == ("http://example.com/ns/age",)

    def test_unknown_reference(self):
        error = find_error([_person(value=ReferenceType(value="_:missing"))])
        assert error.kind is ErrorKind.UNKNOWN_REFERENCE

    def test_self_reference_is_cycle(self):
        value = ProductType(components=[
            Component(key="http://example.com/ns/next", value=ReferenceType(value="_:l0")),
        ])
        error = find_error([_person(value=value)])
        assert error.kind is ErrorKind.CYCLE
        assert error.path == ("_:l0", "_:l0")

    def test_transitive_cycle(self):
        labels = [
            Label(id="_:a", key="http://example.com/ns/A", value=ReferenceType(value="_:b")),
            Label(id="_:b", key="http://example.com/ns/B", value=CoproductType(options=[
                Option(key="http://example.com/ns/back", value=ReferenceType(value="_:a")),
            ])),
        ]
        error = find_error(labels)
        assert error.kind is ErrorKind.CYCLE
        assert "_:a -> _:b -> _:a" in error.message

    def test_acyclic_reference(self):
        labels = [
            Label(id="_:a", key="http://example.com/ns/A", value=ReferenceType(value="_:b")),
            Label(id="_:b", key="http://example.com/ns/B"),
        ]
        assert find_error(labels) is None

    def test_namespace_keys(self):
        label = Label(id="_:l0", key="Person", value=ProductType(components=[
            Component(key="name", value=LiteralType()),
        ]))
        assert find_error([label], NS) is None
        assert find_error([label]).kind is ErrorKind.INVALID_KEY

    def test_short_circuits_on_first_label(self):
        labels = [
            _person(key="bad"),
            _person(id="_:l1", value=ReferenceType(value="_:missing")),
        ]
        error = find_error(labels)
        assert error.kind is ErrorKind.INVALID_KEY
        assert error.label_id == "_:l0"

    def test_to_dict(self):
        error = find_error([_person(key="bad")])
        data = error.to_dict()
        assert data["kind"] == "invalid_key"
        assert data["label"] == "_:l0"
        assert data["key"] == "bad"
        assert data["path"] == []
