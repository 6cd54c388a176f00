from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Literal

from ..models.dataset import Cell, ParsedDataset, RawDatasetFile
from ..models.dialect import Delimiter
from .columns import normalize_headers, normalize_row
from .dialect import detect_delimiter, detect_dialect, split_content_lines
from .metadata import parse_metadata
from .units import detect_glucose_unit

"""Delimited text parsing for dataset files.

File layout:
- line 1: metadata line (skipped for tabular output)
- line 2: header row
- line 3+: data rows, same delimiter as line 2

Cells are trimmed. A cell that is a plain decimal literal (period as the
decimal separator, optional sign/exponent, nothing else) becomes a number;
everything else, including "", stays a string. The check does not depend
on the detected header language.
"""

__all__ = [
    "ExportFormat",
    "parse_cell",
    "parse_csv_table",
    "read_dataset",
    "convert_to_delimited_format",
]

ExportFormat = Literal["csv", "tsv"]

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_RE = re.compile(r"[+-]?\d+")


def parse_cell(text: str) -> Cell:
    trimmed = text.strip()
    if not trimmed or not _NUMBER_RE.fullmatch(trimmed):
        return trimmed
    if _INT_RE.fullmatch(trimmed):
        return int(trimmed)
    return float(trimmed)


def parse_csv_table(content: str, delimiter: Delimiter | None = None) -> list[list[Cell]]:
    """Parse a dataset blob into a 2D cell array (row 0 = header row).

    The metadata line is dropped and blank lines are skipped. Without an
    explicit delimiter the blob's own header line decides (detect_delimiter).
    """
    if not content or not content.strip():
        return []
    if delimiter is None:
        delimiter = detect_delimiter(content)
    table: list[list[Cell]] = []
    for line in split_content_lines(content)[1:]:
        if not line.strip():
            continue
        table.append([parse_cell(cell) for cell in line.split(delimiter.value)])
    return table


def read_dataset(raw: RawDatasetFile) -> ParsedDataset:
    """Run one file through dialect detection, metadata parsing and column normalization."""
    dialect = detect_dialect(raw.content)
    lines = split_content_lines(raw.content)
    metadata = parse_metadata(lines[0] if lines else "")
    header = [h.strip() for h in dialect.split(lines[1])] if len(lines) > 1 else []
    columns = normalize_headers(header, dialect.language)
    rows = [
        normalize_row(header, r, dialect.language)
        for r in parse_csv_table(raw.content, dialect.delimiter)[1:]
    ]
    return ParsedDataset(
        file_name=raw.file_name,
        dialect=dialect,
        metadata=metadata,
        header=header,
        columns=columns,
        glucose_unit=detect_glucose_unit(header),
        rows=rows,
    )


def _escape_cell(cell: object, fmt: ExportFormat) -> str:
    text = "" if cell is None else str(cell)
    if fmt == "tsv":
        return text.replace("\t", "  ").replace("\n", " ")
    if "," in text or "\n" in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def convert_to_delimited_format(rows: Sequence[Sequence[object]], fmt: ExportFormat = "csv") -> str:
    """Render a 2D array (row 0 = headers) as CSV or TSV text."""
    if not rows:
        return ""
    delimiter = "\t" if fmt == "tsv" else ","
    return "\n".join(delimiter.join(_escape_cell(c, fmt) for c in row) for row in rows)
