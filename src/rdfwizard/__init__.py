"""RDFWizard: canonical RDF from delimited tables and schema labels.

Main modules:
- tabular: CSV/TSV parsing into rectangular tables
- validation: URI patterns and schema label checks
- quads: lowering of mapped tables to RDF quads
- export: URDNA2015 canonical N-Quads and download handles
- session: the table-import and schema-editor wizards
"""

from .export import CanonicalExporter, Download, DownloadRegistry
from .quads import Quad, QuadGenerator, generate_quads
from .schema import Label, SchemaDocument
from .tabular import ParseResult, parse_table
from .validation import SchemaValidationError, is_namespace_uri, is_property_uri

# Import version information
from .version import VERSION

__all__ = [
    "VERSION",
    "CanonicalExporter",
    "Download",
    "DownloadRegistry",
    "Label",
    "ParseResult",
    "Quad",
    "QuadGenerator",
    "SchemaDocument",
    "SchemaValidationError",
    "generate_quads",
    "is_namespace_uri",
    "is_property_uri",
    "parse_table",
]
