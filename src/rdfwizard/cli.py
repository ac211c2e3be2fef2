"""Command line interface for :mod:`rdfwizard`."""

import json
from pathlib import Path
from typing import Optional

import click
import yaml

from .export import DATA_FILENAME, SCHEMA_FILENAME, CanonicalExporter, load_schema_schema
from .fetch import DEFAULT_DATAVERSE_URL, DataverseClient, DocumentFetcher
from .importer import SchemaImportError, format_for, parse_schema_string
from .quads import build_column_mapping, namespace_mapping
from .schema import SchemaDocument, compact_labels, load_labels
from .tabular import PREVIEW_LINES, delimiter_for, parse_table
from .validation import SchemaValidationError, is_namespace_uri, is_property_uri

__all__ = [
    "main",
]


def _read_text(path: str, encoding: str = "utf-8") -> str:
    try:
        return Path(path).read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise click.ClickException(f"{path} is not UTF-8 text: {e}") from e


def _read_table(path: str, header: bool):
    text = _read_text(path, "utf-8-sig")
    return parse_table(text, header, delimiter_for(path))


def _echo_errors(table) -> None:
    click.echo(f"Found {len(table.errors)} parse error(s):", err=True)
    for error in table.errors:
        click.echo(f"  row {error.row}: [{error.code}] {error.message}", err=True)


def _load_mapping_file(path: str) -> dict:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.ClickException(f"{path}: expected a mapping at the top level")
    return data


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    r"""RDFWizard - turn CSV/TSV tables and schemas into canonical RDF.

    Typical workflow: preview > convert

    Schemas can be normalized with export-schema and read back with
    import-schema.
    """
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
        logging.getLogger("rdfwizard").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-header", is_flag=True, help="First line is data, not field names")
@click.option("--rows", default=PREVIEW_LINES, show_default=True, help="Rows to show")
def preview(file: str, no_header: bool, rows: int) -> None:
    """Parse a CSV/TSV file and show its first rows.

    Example:
      rdfwizard preview people.csv --rows 5
    """
    table = _read_table(file, not no_header)
    if not table.ok:
        _echo_errors(table)
        raise click.ClickException("Table could not be parsed")

    click.echo(f"Delimiter: {table.delimiter!r}")
    click.echo(f"Rows: {len(table.rows)}  Columns: {table.width}")
    click.echo("=" * 60)
    click.echo(table.to_dataframe().head(rows).to_string(index=False))


@main.command("check-uri")
@click.argument("uris", nargs=-1, required=True)
def check_uri(uris: tuple[str, ...]) -> None:
    """Report whether each URI is a property URI and/or a namespace URI."""
    for uri in uris:
        kinds = []
        if is_property_uri(uri):
            kinds.append("property")
        if is_namespace_uri(uri):
            kinds.append("namespace")
        click.echo(f"{uri}: {', '.join(kinds) if kinds else 'invalid'}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--subject", help="Class URI given to every row")
@click.option("--namespace", help="Name columns by appending headers to this namespace")
@click.option("--column", "columns", multiple=True, help="Column URI (repeat per column)")
@click.option(
    "--mapping",
    "mapping_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with 'subject' and 'namespace' or 'columns'",
)
@click.option("--no-header", is_flag=True, help="First line is data, not field names")
@click.option("--output-dir", default=".", help="Output directory")
def convert(
    file: str,
    subject: Optional[str],
    namespace: Optional[str],
    columns: tuple[str, ...],
    mapping_file: Optional[str],
    no_header: bool,
    output_dir: str,
) -> None:
    """Convert a table to canonical assertion.nq and schema.nq files.

    Every row becomes one entity of class SUBJECT with one xsd:string
    value per column.


    Example:
      rdfwizard convert people.csv --subject http://example.com/ns/Person \
                        --namespace http://example.com/ns/
    """
    if mapping_file:
        config = _load_mapping_file(mapping_file)
        subject = subject or config.get("subject")
        namespace = namespace or config.get("namespace")
        columns = columns or tuple(config.get("columns") or ())

    if not subject:
        raise click.UsageError("A subject URI is required (--subject or mapping file)")
    if not is_property_uri(subject):
        raise click.ClickException(f"Invalid subject URI: {subject}")

    table = _read_table(file, not no_header)
    if not table.ok:
        _echo_errors(table)
        raise click.ClickException("Table could not be parsed")

    try:
        if namespace:
            uris = namespace_mapping(namespace, table.fields)
        elif columns:
            uris = list(columns)
        else:
            raise click.UsageError("Give --namespace, --column or --mapping")

        if len(uris) != table.width:
            raise click.ClickException(
                f"Expected {table.width} column URIs, got {len(uris)}"
            )
        mapping = build_column_mapping(uris)
        if mapping is None:
            bad = [uri for uri in uris if not is_property_uri(uri)]
            raise click.ClickException(f"Invalid column URI(s): {', '.join(bad)}")

        result = CanonicalExporter().export_table(table, subject, mapping)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    (output_path / DATA_FILENAME).write_text(result.data, encoding="utf-8")
    (output_path / SCHEMA_FILENAME).write_text(result.schema, encoding="utf-8")

    click.echo(f"Converted {len(table.rows)} rows")
    click.echo(f"  Data:   {output_path / DATA_FILENAME}")
    click.echo(f"  Schema: {output_path / SCHEMA_FILENAME}")


@main.command("export-schema")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--namespace", help="Namespace the label keys are relative to")
@click.option("--output", help="Output file (prints to console if omitted)")
def export_schema(file: str, namespace: Optional[str], output: Optional[str]) -> None:
    """Validate a JSON labels document and normalize it to N-Quads."""
    try:
        data = json.loads(_read_text(file))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{file} is not JSON: {e}") from e

    try:
        labels = compact_labels(load_labels(data), namespace)
        normalized = CanonicalExporter().export_schema(
            SchemaDocument(labels=labels, namespace=namespace),
        )
    except SchemaValidationError as e:
        raise click.ClickException(f"{e.kind.value}: {e.message}") from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if output:
        Path(output).write_text(normalized, encoding="utf-8")
        click.echo(f"Schema saved to: {output}")
    else:
        click.echo(normalized, nl=False)


@main.command("import-schema")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def import_schema(file: str) -> None:
    """Read an exported schema (.nq or .nt) back into JSON labels."""
    text = _read_text(file)
    try:
        labels = parse_schema_string(text, load_schema_schema(), format_for(file))
    except SchemaImportError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps([label.to_jsonld() for label in labels], indent=2))


@main.command()
@click.argument("persistent_id")
@click.option("--dataverse-url", default=DEFAULT_DATAVERSE_URL, show_default=True)
@click.option("--api-token", envvar="DATAVERSE_API_TOKEN", help="Dataverse API token")
@click.option("--timeout", type=float, help="Request timeout in seconds")
@click.option("--output", help="Output file (prints to console if omitted)")
def fetch(
    persistent_id: str,
    dataverse_url: str,
    api_token: Optional[str],
    timeout: Optional[float],
    output: Optional[str],
) -> None:
    """Download a data file from Dataverse by persistent id.

    Example:
      rdfwizard fetch doi:10.7910/DVN/A4BZU8/9ASKFB --output data.tsv
    """
    client = DataverseClient(DocumentFetcher(timeout=timeout), dataverse_url, api_token)
    text = client.fetch_datafile(persistent_id)
    if text is None:
        raise click.ClickException(f"Could not fetch {persistent_id}")

    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Saved {persistent_id} to: {output}")
    else:
        click.echo(text, nl=False)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=5000, show_default=True, type=int)
@click.option("--debug", is_flag=True, help="Run Flask in debug mode")
def serve(host: str, port: int, debug: bool) -> None:
    """Run the HTTP API."""
    from .backend.app import create_app

    create_app().run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
