"""Delimited-text parsing — pure-library module (no Flask dependency).

Turns raw CSV / TSV text into a rectangular :class:`ParseResult`:

* Blank lines are skipped greedily (empty and whitespace-only rows,
  anywhere in the input).
* With a header, the first retained row names the fields and every later
  row becomes a ``{field: cell}`` dict.  Duplicate field names are not
  deduplicated: a later column silently shadows an earlier one.
* Cells are always strings; no numeric or date coercion happens.

Problems are reported as :class:`ParseError` values, never raised.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import PurePath
from typing import Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

TAB_TYPES = [".tsv", "text/tsv", "text/tab-separated-values"]
COMMA_TYPES = [".csv", "text/csv"]
ACCEPT = ",".join(TAB_TYPES + COMMA_TYPES)

SNIFF_DELIMITERS = ",\t;|"
PREVIEW_LINES = 10

Row = Union[list[str], dict[str, str]]


class ParseError(BaseModel):
    """One structured problem found while parsing."""

    type: str = Field(..., description="Error family, e.g. 'FieldMismatch'")
    code: str = Field(..., description="Error code, e.g. 'TooFewFields'")
    row: int = Field(..., ge=0, description="Index of the offending data row")
    message: str

    model_config = ConfigDict(frozen=True)


class ParseResult(BaseModel):
    """A parsed table.

    ``fields`` is ``None`` when the text was parsed without a header; rows
    are then positional lists.  Otherwise rows are dicts keyed by field.
    """

    rows: list[Row] = Field(default_factory=list)
    fields: Optional[list[str]] = None
    errors: list[ParseError] = Field(default_factory=list)
    delimiter: str = ","

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def has_header(self) -> bool:
        return self.fields is not None

    @property
    def width(self) -> int:
        """Number of columns: header length, or the longest row."""
        if self.fields is not None:
            return len(self.fields)
        return max((len(row) for row in self.rows), default=0)

    def cell(self, i: int, j: int) -> Optional[str]:
        """Return the cell at row *i*, column *j*, or ``None`` if missing."""
        row = self.rows[i]
        if isinstance(row, dict):
            return row.get(self.fields[j]) if j < len(self.fields) else None
        return row[j] if j < len(row) else None

    def label(self, j: int) -> Optional[str]:
        """Header name of column *j* (``None`` without a header)."""
        if self.fields is None:
            return None
        return self.fields[j]

    def preview(self, n: int = PREVIEW_LINES) -> list[list[str]]:
        """First *n* rows as positional lists, missing cells as ``""``."""
        return [
            [self.cell(i, j) or "" for j in range(self.width)]
            for i in range(min(n, len(self.rows)))
        ]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the rows as an all-string :class:`pandas.DataFrame`."""
        data = [
            [self.cell(i, j) or "" for j in range(self.width)]
            for i in range(len(self.rows))
        ]
        columns = self.fields if self.fields is not None else list(range(self.width))
        return pd.DataFrame(data, columns=columns, dtype=str)


def delimiter_for(name: Optional[str]) -> Optional[str]:
    """Pick a delimiter from a file name or media type.

    Returns ``None`` when the name says nothing, meaning "sniff it".
    """
    if not name:
        return None
    lowered = name.lower().split(";")[0].strip()
    suffix = PurePath(lowered).suffix
    if lowered in TAB_TYPES or suffix in TAB_TYPES:
        return "\t"
    if lowered in COMMA_TYPES or suffix in COMMA_TYPES:
        return ","
    return None


def detect_delimiter(text: str) -> str:
    """Guess the delimiter of *text*, falling back to a comma."""
    sample = "\n".join(text.splitlines()[:PREVIEW_LINES])
    try:
        return csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS).delimiter
    except csv.Error:
        logger.debug("Could not sniff delimiter, using ','")
        return ","


def _is_blank(cells: list[str]) -> bool:
    return all(not cell.strip() for cell in cells)


def parse_table(
    text: str,
    header: bool = True,
    delimiter: Optional[str] = None,
) -> ParseResult:
    """Parse delimited *text* into a :class:`ParseResult`.

    Args:
        text: Raw CSV / TSV text
        header: Treat the first non-blank line as field names
        delimiter: Column separator; sniffed from the text when ``None``

    Returns:
        ParseResult with rows, optional fields and any parse errors
    """
    if delimiter is None:
        delimiter = detect_delimiter(text)

    errors: list[ParseError] = []
    records: list[list[str]] = []
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    try:
        for cells in reader:
            if _is_blank(cells):
                continue
            records.append(cells)
    except csv.Error as exc:
        row = max(len(records) - 1, 0) if header else len(records)
        errors.append(ParseError(
            type="Quotes",
            code="MissingQuotes",
            row=row,
            message=f"Malformed quoted field near line {reader.line_num}: {exc}",
        ))

    if not header:
        logger.debug("Parsed %d rows without header", len(records))
        return ParseResult(rows=records, errors=errors, delimiter=delimiter)

    fields = records[0] if records else []
    rows: list[Row] = []
    for index, cells in enumerate(records[1:]):
        if len(cells) != len(fields):
            code = "TooFewFields" if len(cells) < len(fields) else "TooManyFields"
            errors.append(ParseError(
                type="FieldMismatch",
                code=code,
                row=index,
                message=(
                    f"Too {'few' if code == 'TooFewFields' else 'many'} fields: "
                    f"expected {len(fields)} fields but parsed {len(cells)}"
                ),
            ))
        rows.append(dict(zip(fields, cells)))

    logger.debug("Parsed %d rows with %d fields", len(rows), len(fields))
    return ParseResult(rows=rows, fields=fields, errors=errors, delimiter=delimiter)
