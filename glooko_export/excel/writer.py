from __future__ import annotations

import io
import re
from collections.abc import Iterable, Sequence

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..config.loader import FormattingConfig
from ..models.dataset import Cell
from ..models.workbook import (
    SUMMARY_SHEET_NAME,
    ColumnFormat,
    SheetKind,
    SheetLayout,
    WorkbookLayout,
)

"""XLSX workbook layout and serialization.

Layout (pure, testable without reading XLSX back):
- sanitize_sheet_name / unique_sheet_name: Excel tab name rules
- get_column_number_format: number format chosen from the header text
- calculate_column_width: longest stringified cell + 2 padding
- clean_cell: strips characters XLSX cannot hold
- build_data_sheet / build_summary_sheet: SheetLayout construction

Serialization:
- write_workbook: pandas.ExcelWriter (openpyxl engine) writes the values,
  then openpyxl styles are applied to header and data cells. Text that
  starts with "=" is stored as a string, not a formula. Empty strings come
  back as empty cells (openpyxl does not write "" values).
"""

__all__ = [
    "MAX_SHEET_NAME_LENGTH",
    "NUMBER_FORMAT_INTEGER",
    "NUMBER_FORMAT_ONE_DECIMAL",
    "SUMMARY_HEADER",
    "sanitize_sheet_name",
    "unique_sheet_name",
    "get_column_number_format",
    "calculate_column_width",
    "clean_cell",
    "build_data_sheet",
    "build_summary_sheet",
    "write_workbook",
]

MAX_SHEET_NAME_LENGTH = 31  # hard limit of the XLSX format
NUMBER_FORMAT_INTEGER = "#,##0"
NUMBER_FORMAT_ONE_DECIMAL = "#,##0.0"
WIDTH_PADDING = 2
SUMMARY_HEADER: list[Cell] = ["Dataset Name", "Number of Records"]

_INVALID_SHEET_CHARS = re.compile(r"[\\/*?\[\]:]")


def sanitize_sheet_name(name: str) -> str:
    """Replace \\ / * ? [ ] : with '_' and truncate to 31 characters."""
    return _INVALID_SHEET_CHARS.sub("_", name)[:MAX_SHEET_NAME_LENGTH]


def unique_sheet_name(name: str, taken: Iterable[str]) -> str:
    """Sanitize, then add a _<n> suffix when the name is already used.

    Excel compares tab names case-insensitively.
    """
    base = sanitize_sheet_name(name) or "Sheet"
    used = {t.lower() for t in taken}
    if base.lower() not in used:
        return base
    n = 2
    while True:
        suffix = f"_{n}"
        candidate = base[: MAX_SHEET_NAME_LENGTH - len(suffix)] + suffix
        if candidate.lower() not in used:
            return candidate
        n += 1


def get_column_number_format(column_name: str, formatting: FormattingConfig | None = None) -> ColumnFormat:
    """Integer format for counts/ids, one decimal for glucose/insulin-like columns."""
    fmt = formatting or FormattingConfig()
    lower = column_name.lower()
    if any(k in lower for k in fmt.integer_keywords):
        return ColumnFormat(NUMBER_FORMAT_INTEGER)
    if any(k in lower for k in fmt.decimal_keywords):
        return ColumnFormat(NUMBER_FORMAT_ONE_DECIMAL)
    return ColumnFormat(None)


def _cell_text(cell: Cell | None) -> str:
    if cell is None:
        return ""
    if isinstance(cell, float) and cell.is_integer() and abs(cell) < 1e21:
        return str(int(cell))  # 5.0 -> "5"
    return str(cell)


def clean_cell(cell: Cell) -> Cell:
    """Drop control characters the XLSX format cannot store (e.g. \\x0b)."""
    if isinstance(cell, str):
        return ILLEGAL_CHARACTERS_RE.sub("", cell)
    return cell


def calculate_column_width(values: Iterable[Cell | None], min_width: int = 10) -> int:
    max_length = min_width
    for cell in values:
        max_length = max(max_length, len(_cell_text(cell)))
    return max_length + WIDTH_PADDING


def _column_values(rows: Sequence[Sequence[Cell]], col: int) -> list[Cell]:
    return [row[col] for row in rows if col < len(row)]


def build_data_sheet(
    display_name: str,
    rows: list[list[Cell]],
    taken_names: Iterable[str] = (),
    formatting: FormattingConfig | None = None,
) -> SheetLayout:
    """Lay out one dataset sheet; rows[0] is the header row."""
    fmt = formatting or FormattingConfig()
    rows = [[clean_cell(cell) for cell in row] for row in rows]
    col_count = max((len(r) for r in rows), default=0)
    header = rows[0] if rows else []
    column_formats = [
        get_column_number_format(_cell_text(header[c]) if c < len(header) else "", fmt)
        for c in range(col_count)
    ]
    column_widths = [
        calculate_column_width(_column_values(rows, c), fmt.min_column_width)
        for c in range(col_count)
    ]
    return SheetLayout(
        name=unique_sheet_name(display_name, [SUMMARY_SHEET_NAME, *taken_names]),
        display_name=display_name,
        rows=rows,
        column_formats=column_formats,
        column_widths=column_widths,
        kind=SheetKind.DATA,
    )


def build_summary_sheet(
    entries: Sequence[tuple[str, int]],
    formatting: FormattingConfig | None = None,
) -> SheetLayout:
    """Summary sheet: one (dataset name, declared row count) row per dataset.

    Dataset names are shown as given, never sanitized or truncated.
    """
    fmt = formatting or FormattingConfig()
    rows: list[list[Cell]] = [list(SUMMARY_HEADER)]
    rows.extend([clean_cell(name), count] for name, count in entries)
    first_min, other_min = fmt.summary_column_widths
    column_widths = [
        calculate_column_width(_column_values(rows, c), first_min if c == 0 else other_min)
        for c in range(len(SUMMARY_HEADER))
    ]
    return SheetLayout(
        name=SUMMARY_SHEET_NAME,
        display_name=SUMMARY_SHEET_NAME,
        rows=rows,
        column_formats=[ColumnFormat(None), ColumnFormat(NUMBER_FORMAT_INTEGER)],
        column_widths=column_widths,
        kind=SheetKind.SUMMARY,
    )


class _Styles:
    def __init__(self, formatting: FormattingConfig) -> None:
        self.header_font = Font(bold=True, size=11, color=formatting.header_font_color)
        self.header_fill = PatternFill(
            fill_type="solid", start_color=formatting.header_fill, end_color=formatting.header_fill
        )
        self.left = Alignment(horizontal="left", vertical="center")
        self.right = Alignment(horizontal="right", vertical="center")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _apply_sheet_styles(ws: Worksheet, layout: SheetLayout, styles: _Styles) -> None:
    for c, width in enumerate(layout.column_widths, start=1):
        ws.column_dimensions[get_column_letter(c)].width = width

    for r, row in enumerate(layout.rows, start=1):
        for c, value in enumerate(row, start=1):
            cell = ws.cell(row=r, column=c)
            if isinstance(value, str) and value.startswith("="):
                # user text, never a formula
                cell.value = value
                cell.data_type = "s"
            if r == 1:
                cell.font = styles.header_font
                cell.fill = styles.header_fill
                cell.alignment = styles.left
                continue
            numeric = _is_number(value)
            if layout.kind is SheetKind.SUMMARY:
                # name column left, counts right
                cell.alignment = styles.left if c == 1 else styles.right
            else:
                cell.alignment = styles.right if numeric else styles.left
            col_format = layout.column_formats[c - 1] if c - 1 < len(layout.column_formats) else None
            if numeric and col_format is not None and col_format.should_format:
                cell.number_format = col_format.number_format


def write_workbook(layout: WorkbookLayout, formatting: FormattingConfig | None = None) -> bytes:
    """Serialize a WorkbookLayout to XLSX bytes (Summary sheet first)."""
    styles = _Styles(formatting or FormattingConfig())
    buffer = io.BytesIO()
    ordered = [layout.summary, *layout.sheets]
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet in ordered:
            df = pd.DataFrame(sheet.rows, dtype=object)
            df.to_excel(writer, sheet_name=sheet.name, header=False, index=False)
            _apply_sheet_styles(writer.sheets[sheet.name], sheet, styles)
    return buffer.getvalue()
