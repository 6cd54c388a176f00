from __future__ import annotations

from dataclasses import dataclass, field

from .dataset import DatasetMetadata

"""ZIP validation result models.

These mirror what the upload step learns about an archive before export:
which datasets it contains, how many rows each declares and which entries
hold their content. The exporter trusts these values as given; the declared
row counts are written to the Summary sheet verbatim.
"""

__all__ = [
    "CsvFileMetadata",
    "ZipMetadata",
]


@dataclass(frozen=True)
class CsvFileMetadata:
    """One logical dataset of an archive, exported as one sheet."""
    name: str  # Dataset name, e.g. "cgm"
    row_count: int  # Declared data rows (summed across shards)
    column_names: list[str] = field(default_factory=list)
    glucose_unit: str | None = None  # "mmol/L" | "mg/dL" | None
    file_count: int = 1
    source_files: list[str] | None = None  # Ordered archive entry paths

    @property
    def is_merged(self) -> bool:
        return bool(self.source_files) and len(self.source_files) > 1


@dataclass(frozen=True)
class ZipMetadata:
    """Validation outcome for an uploaded archive."""
    is_valid: bool
    csv_files: list[CsvFileMetadata]
    error: str | None = None
    metadata_line: str | None = None
    parsed_metadata: DatasetMetadata | None = None

    @staticmethod
    def invalid(error: str) -> ZipMetadata:
        return ZipMetadata(is_valid=False, csv_files=[], error=error)
