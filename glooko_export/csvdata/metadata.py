from __future__ import annotations

import re

from ..models.dataset import DatasetMetadata

"""Metadata line parsing.

The first line of every dataset file carries export metadata, e.g.

    Name:John Doe, Date Range:2025-01-01 - 2025-01-31
    Name:Igor Irić<TAB>Date Range:2025-07-29 - 2025-10-26

The separator between segments is a comma or, when no comma is present, a
tab. Malformed input yields an empty record and never raises.
"""

__all__ = [
    "parse_metadata",
    "is_valid_metadata",
    "format_metadata_for_display",
]

_DATE_RANGE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\s*-\s*(\d{4}-\d{2}-\d{2})$")


def parse_metadata(metadata_line: str | None) -> DatasetMetadata:
    """Parse a metadata line into a DatasetMetadata record.

    Recognised keys (case-insensitive): ``name`` and ``date range``. Unknown
    keys, segments without a colon and empty values are ignored.
    """
    if not metadata_line or not metadata_line.strip():
        return DatasetMetadata()

    parts = [p.strip() for p in metadata_line.split(",")]
    if len(parts) == 1:
        parts = [p.strip() for p in metadata_line.split("\t")]

    fields: dict[str, str] = {}
    for part in parts:
        key, sep, value = part.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.strip()
        if not value:
            continue
        if key == "name":
            fields["name"] = value
        elif key == "date range":
            fields["date_range"] = value
            m = _DATE_RANGE_RE.match(value)
            if m:
                fields["start_date"] = m.group(1)
                fields["end_date"] = m.group(2)
            else:
                # a later unparseable range must not keep stale dates
                fields.pop("start_date", None)
                fields.pop("end_date", None)
    return DatasetMetadata(**fields)


def is_valid_metadata(metadata: DatasetMetadata) -> bool:
    """True iff a name or a date range is present.

    start_date/end_date alone do not make a record valid.
    """
    return bool(metadata.name) or bool(metadata.date_range)


def format_metadata_for_display(metadata: DatasetMetadata) -> str:
    parts: list[str] = []
    if metadata.name:
        parts.append(f"Name: {metadata.name}")
    if metadata.date_range:
        parts.append(f"Date Range: {metadata.date_range}")
    return " | ".join(parts)
