from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .dataset import Cell

"""Workbook layout models.

A WorkbookLayout is the complete, in-memory description of the export
artifact: cell values plus per-column formatting metadata for every sheet.
It is built first and serialized to XLSX bytes in one step by
glooko_export.excel.writer.write_workbook().
"""

__all__ = [
    "SheetKind",
    "ColumnFormat",
    "SheetLayout",
    "WorkbookLayout",
    "SUMMARY_SHEET_NAME",
]

SUMMARY_SHEET_NAME = "Summary"


class SheetKind(Enum):
    SUMMARY = "summary"
    DATA = "data"


@dataclass(frozen=True)
class ColumnFormat:
    """Number format applied to numeric cells of one column (None = General)."""
    number_format: str | None = None

    @property
    def should_format(self) -> bool:
        return self.number_format is not None


@dataclass(frozen=True)
class SheetLayout:
    name: str  # Sanitized sheet tab name (<= 31 chars)
    display_name: str  # Dataset name as shown in the Summary sheet
    rows: list[list[Cell]]  # Row 0 is the header row
    column_formats: list[ColumnFormat]
    column_widths: list[int]
    kind: SheetKind = SheetKind.DATA

    @property
    def header(self) -> list[Cell]:
        return self.rows[0] if self.rows else []

    @property
    def data_row_count(self) -> int:
        return max(0, len(self.rows) - 1)


@dataclass(frozen=True)
class WorkbookLayout:
    summary: SheetLayout
    sheets: list[SheetLayout] = field(default_factory=list)

    @property
    def sheet_names(self) -> list[str]:
        """Tab order of the serialized workbook: Summary first."""
        return [self.summary.name] + [s.name for s in self.sheets]
