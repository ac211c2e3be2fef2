"""Tests for canonical N-Quads export and download handles."""

import pytest

from rdfwizard.export import (
    ALGORITHM,
    NQUADS,
    CanonicalExporter,
    DownloadRegistry,
    ExportSlot,
    load_context,
    load_example_schema,
    normalize_options,
)
from rdfwizard.schema import Label, SchemaDocument, compact_labels, load_labels
from rdfwizard.tabular import parse_table
from rdfwizard.validation import ErrorKind, SchemaValidationError

NS = "http://example.com/ns/"
PERSON = NS + "Person"
MAPPING = (NS + "name", NS + "age")


@pytest.fixture(scope="module")
def exporter():
    return CanonicalExporter()


@pytest.fixture
def table():
    return parse_table("name,age\nAlice,30\nBob,25\n", delimiter=",")


@pytest.fixture
def example_document():
    labels = compact_labels(load_labels(load_example_schema()), NS)
    return SchemaDocument(labels=labels, namespace=NS)


class TestOptions:
    """Options handed to the normalizer."""

    def test_without_namespace(self):
        assert normalize_options() == {"algorithm": ALGORITHM, "format": NQUADS}

    def test_with_namespace(self):
        assert normalize_options(NS)["base"] == NS

    def test_context_is_a_copy(self):
        context = load_context()
        context["@context"]["ul"] = "changed"
        assert load_context()["@context"]["ul"] == "http://underlay.org/ns/"


class TestTableExport:
    """Canonical data and schema for a mapped table."""

    def test_data(self, exporter, table):
        result = exporter.export_table(table, PERSON, MAPPING)
        lines = result.data.splitlines()
        assert len(lines) == 6
        assert lines == sorted(lines)
        assert "_:c14n0" in result.data
        assert "_:s-0" not in result.data
        assert '"Alice"' in result.data
        assert f"<{PERSON}>" in result.data

    def test_idempotent(self, exporter, table):
        first = exporter.export_table(table, PERSON, MAPPING)
        second = exporter.export_table(table, PERSON, MAPPING)
        assert first == second

    def test_row_order_does_not_matter(self, exporter, table):
        swapped = parse_table("name,age\nBob,25\nAlice,30\n", delimiter=",")
        assert (
            exporter.export_table(table, PERSON, MAPPING).data
            == exporter.export_table(swapped, PERSON, MAPPING).data
        )

    def test_schema(self, exporter, table):
        schema = exporter.export_table(table, PERSON, MAPPING).schema
        assert "<http://underlay.org/ns/label>" in schema
        assert "<http://underlay.org/ns/product>" in schema
        assert f"<{PERSON}>" in schema
        assert f"<{NS}age>" in schema

    def test_schema_document(self, exporter):
        doc = exporter.table_schema_document(PERSON, MAPPING)
        assert "@context" in doc
        (label,) = doc["@graph"]
        assert label["key"] == PERSON
        assert [c["key"] for c in label["value"]["components"]] == list(MAPPING)

    def test_rejects_parse_errors(self, exporter):
        broken = parse_table("name,age\nAlice\n", delimiter=",")
        with pytest.raises(ValueError):
            exporter.export_table(broken, PERSON, MAPPING)

    @pytest.mark.parametrize("sep", ["\x0b", "\x0c", "\x1c", "\x85", "\u2028"])
    def test_line_separators_in_cells(self, exporter, sep):
        table = parse_table(f"name\nAnn{sep}Lee\n", True, ",")
        assert table.ok
        data = exporter.export_table(table, PERSON, [NS + "name"]).data
        assert len(data.split("\n")) == 3
        assert f'"Ann{sep}Lee"' in data

    def test_escaped_characters(self, exporter):
        table = parse_table('name\n"say ""hi"" \\ now"\n', True, ",")
        data = exporter.export_table(table, PERSON, [NS + "name"]).data
        assert '"say \\"hi\\" \\\\ now"' in data


class TestSchemaExport:
    """Validation and normalization of label sets."""

    def test_example(self, exporter, example_document):
        normalized = exporter.export_schema(example_document)
        assert f"<{NS}Organization>" in normalized
        assert "<http://www.w3.org/2001/XMLSchema#integer>" in normalized
        assert "<http://underlay.org/ns/reference>" in normalized

    def test_idempotent(self, exporter, example_document):
        assert exporter.export_schema(example_document) == exporter.export_schema(example_document)

    def test_invalid(self, exporter):
        document = SchemaDocument(labels=[Label(id="_:l0", key="")], namespace=NS)
        with pytest.raises(SchemaValidationError) as info:
            exporter.export_schema(document)
        assert info.value.kind is ErrorKind.INVALID_KEY

    def test_without_namespace(self, exporter):
        document = SchemaDocument(labels=[Label(id="_:l0", key=PERSON)])
        normalized = exporter.export_schema(document)
        assert f"<http://underlay.org/ns/key> <{PERSON}>" in normalized


class TestDownloads:
    """Acquire-replace-release handles."""

    def test_mint_and_get(self):
        registry = DownloadRegistry()
        download = registry.mint("x .\n", "schema.nq")
        assert registry.get(download.handle) == download
        assert download.content == b"x .\n"
        assert download.media_type == NQUADS
        assert download.describe()["size"] == 4
        assert len(registry) == 1

    def test_revoke(self):
        registry = DownloadRegistry()
        download = registry.mint("", "schema.nq")
        assert registry.revoke(download.handle)
        assert registry.get(download.handle) is None
        assert not registry.revoke(download.handle)

    def test_slot_replaces(self):
        registry = DownloadRegistry()
        slot = ExportSlot(registry, "assertion.nq")
        first = slot.replace("a")
        second = slot.replace("b")
        assert registry.get(first.handle) is None
        assert registry.get(second.handle) == second
        assert second.filename == "assertion.nq"
        assert len(registry) == 1

    def test_slot_release(self):
        registry = DownloadRegistry()
        slot = ExportSlot(registry, "assertion.nq")
        slot.replace("a")
        slot.release()
        assert slot.current is None
        assert len(registry) == 0
        slot.release()
