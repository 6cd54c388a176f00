from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

"""Export result models.

ExportResult is what convert_zip_to_xlsx() hands back: the serialized
workbook plus the list of datasets that could not be turned into sheets.
"""

__all__ = [
    "SkippedDataset",
    "ExportResult",
    "XLSX_MIME_TYPE",
    "XLSX_EXTENSION",
]

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSX_EXTENSION = ".xlsx"


@dataclass(frozen=True)
class SkippedDataset:
    """A dataset whose sheet was omitted from the workbook."""
    name: str
    reason: str  # e.g. SOURCE_NOT_FOUND, SOURCE_UNREADABLE, EMPTY_CONTENT
    source_files: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExportResult:
    content: bytes  # XLSX bytes, immutable once produced
    sheet_names: list[str]  # Tab order, Summary first
    summary_rows: list[tuple[str, int]]  # (dataset name, declared row count)
    skipped_datasets: list[SkippedDataset]
    start_time: datetime
    end_time: datetime
    mime_type: str = XLSX_MIME_TYPE

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def has_skipped(self) -> bool:
        return bool(self.skipped_datasets)

    @property
    def total_rows(self) -> int:
        return sum(count for _, count in self.summary_rows)
