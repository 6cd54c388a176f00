from __future__ import annotations

import io

import openpyxl
import pytest

from glooko_export.config.loader import FormattingConfig
from glooko_export.excel.writer import (
    NUMBER_FORMAT_INTEGER,
    NUMBER_FORMAT_ONE_DECIMAL,
    build_data_sheet,
    build_summary_sheet,
    calculate_column_width,
    clean_cell,
    get_column_number_format,
    sanitize_sheet_name,
    unique_sheet_name,
    write_workbook,
)
from glooko_export.models.workbook import SheetKind, WorkbookLayout

CGM_ROWS = [
    ["Timestamp", "CGM Glucose Value (mmol/L)", "Serial Number"],
    ["2025-01-01 00:00", 5.5, "DXC4B2P"],
    ["2025-01-01 00:05", 5.7, "DXC4B2P"],
]


def test_sanitize_sheet_name_replaces_invalid_characters():
    """Characters Excel forbids in tab names become underscores."""
    assert sanitize_sheet_name("a/b:c*?[x]\\") == "a_b_c___x__"


def test_sanitize_sheet_name_truncates():
    """Tab names are cut at 31 characters."""
    assert sanitize_sheet_name("x" * 40) == "x" * 31


def test_unique_sheet_name_avoids_collisions_case_insensitively():
    """Excel treats "CGM" and "cgm" as the same tab name."""
    assert unique_sheet_name("cgm", []) == "cgm"
    assert unique_sheet_name("summary", ["Summary"]) == "summary_2"
    assert unique_sheet_name("cgm", ["CGM", "cgm_2"]) == "cgm_3"


def test_unique_sheet_name_suffix_fits_length_limit():
    """The _<n> suffix replaces the tail of a 31-character name."""
    name = unique_sheet_name("a" * 40, ["a" * 31])
    assert name == "a" * 29 + "_2"
    assert len(name) == 31


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Number of Records", NUMBER_FORMAT_INTEGER),
        ("Serial Number", NUMBER_FORMAT_INTEGER),
        ("Event Count", NUMBER_FORMAT_INTEGER),
        ("CGM Glucose Value (mmol/L)", NUMBER_FORMAT_ONE_DECIMAL),
        ("Insulin Delivered (U)", NUMBER_FORMAT_ONE_DECIMAL),
        ("Carbs Input (g)", NUMBER_FORMAT_ONE_DECIMAL),
        ("Basal Rate (U/h)", NUMBER_FORMAT_ONE_DECIMAL),
        ("Timestamp", None),
        ("Notes", None),
    ],
)
def test_get_column_number_format(header: str, expected):
    """Number format follows keywords found in the header text."""
    assert get_column_number_format(header).number_format == expected


def test_integer_keywords_take_precedence():
    """A header with both kinds of keyword gets the integer format."""
    # "glucose" would be decimal but "count" is checked first
    assert get_column_number_format("Glucose Reading Count").number_format == NUMBER_FORMAT_INTEGER


def test_custom_keywords_from_formatting_config():
    """Keywords come from FormattingConfig when given."""
    fmt = FormattingConfig(integer_keywords=("steps",), decimal_keywords=())
    assert get_column_number_format("Steps", fmt).number_format == NUMBER_FORMAT_INTEGER
    assert get_column_number_format("Glucose", fmt).should_format is False


def test_calculate_column_width():
    """Width is the longest cell text, at least the minimum, plus 2."""
    assert calculate_column_width([]) == 12
    assert calculate_column_width(["short", 1]) == 12
    assert calculate_column_width(["CGM Glucose Value (mmol/L)", 5.5]) == 28
    assert calculate_column_width([None, "abc"], min_width=20) == 22


def test_build_data_sheet_layout():
    """Widths and number formats are derived per column."""
    sheet = build_data_sheet("cgm", CGM_ROWS)
    assert sheet.name == "cgm"
    assert sheet.display_name == "cgm"
    assert sheet.kind is SheetKind.DATA
    assert sheet.header == CGM_ROWS[0]
    assert sheet.data_row_count == 2
    assert sheet.column_widths == [18, 28, 15]
    assert [f.number_format for f in sheet.column_formats] == [None, NUMBER_FORMAT_ONE_DECIMAL, NUMBER_FORMAT_INTEGER]


def test_build_data_sheet_never_uses_summary_name():
    """A dataset called Summary gets a suffixed tab."""
    sheet = build_data_sheet("Summary", CGM_ROWS)
    assert sheet.name == "Summary_2"
    assert sheet.display_name == "Summary"


def test_build_data_sheet_handles_ragged_and_empty_rows():
    """Short rows and an empty table still produce a layout."""
    sheet = build_data_sheet("x", [["a"], ["b", "c", "d"]])
    assert len(sheet.column_widths) == 3
    assert len(sheet.column_formats) == 3
    empty = build_data_sheet("empty", [])
    assert empty.column_widths == []
    assert empty.data_row_count == 0


def test_build_summary_sheet_defaults():
    """Header row first, then one row per dataset."""
    summary = build_summary_sheet([("cgm", 5), ("bolus", 2)])
    assert summary.name == "Summary"
    assert summary.kind is SheetKind.SUMMARY
    assert summary.rows == [["Dataset Name", "Number of Records"], ["cgm", 5], ["bolus", 2]]
    assert summary.column_widths == [22, 19]
    assert summary.column_formats[1].number_format == NUMBER_FORMAT_INTEGER


def test_build_summary_sheet_keeps_long_dataset_names():
    """Summary rows show the full dataset name."""
    long_name = "a_really_long_dataset_name_that_exceeds_sheet_limits"
    summary = build_summary_sheet([(long_name, 1)])
    assert summary.rows[1][0] == long_name
    assert summary.column_widths[0] == len(long_name) + 2


def test_write_workbook_orders_and_styles_sheets():
    """Read back: sheet order, header styling, alignment and number formats."""
    layout = WorkbookLayout(
        summary=build_summary_sheet([("cgm", 2)]),
        sheets=[build_data_sheet("cgm", CGM_ROWS)],
    )
    content = write_workbook(layout)
    wb = openpyxl.load_workbook(io.BytesIO(content))
    assert wb.sheetnames == ["Summary", "cgm"]

    summary = wb["Summary"]
    assert summary["A1"].value == "Dataset Name"
    assert summary["A1"].font.bold is True
    assert summary["A1"].fill.start_color.rgb.endswith("F3F2F1")
    assert summary["A2"].value == "cgm"
    assert summary["A2"].alignment.horizontal == "left"
    assert summary["B2"].value == 2
    assert summary["B2"].alignment.horizontal == "right"
    assert summary["B2"].number_format == NUMBER_FORMAT_INTEGER
    assert summary.column_dimensions["A"].width == 22

    cgm = wb["cgm"]
    assert [c.value for c in cgm[1]] == CGM_ROWS[0]
    assert cgm["B2"].value == 5.5
    assert cgm["B2"].number_format == NUMBER_FORMAT_ONE_DECIMAL
    assert cgm["B2"].alignment.horizontal == "right"
    assert cgm["A2"].value == "2025-01-01 00:00"
    assert cgm["A2"].alignment.horizontal == "left"
    assert cgm["C2"].number_format == "General"
    assert cgm.column_dimensions["B"].width == 28


def test_write_workbook_uses_configured_header_colors():
    """Header fill and font color follow the config."""
    fmt = FormattingConfig(header_fill="DDEEFF", header_font_color="000000")
    layout = WorkbookLayout(summary=build_summary_sheet([], fmt))
    wb = openpyxl.load_workbook(io.BytesIO(write_workbook(layout, fmt)))
    header = wb["Summary"]["B1"]
    assert header.fill.start_color.rgb.endswith("DDEEFF")
    assert header.font.color.rgb.endswith("000000")


def test_calculate_column_width_renders_whole_floats_without_fraction():
    """5.0 is measured as "5", the way it is displayed."""
    assert calculate_column_width([123456789.0], min_width=1) == 11
    assert calculate_column_width([12345.5], min_width=1) == 9
    assert calculate_column_width([-42.0], min_width=1) == 5


def test_clean_cell_strips_illegal_characters():
    """Control characters openpyxl refuses are removed; tabs and numbers are kept."""
    assert clean_cell("a\x0bb") == "ab"
    assert clean_cell("x\x00y\x1f") == "xy"
    assert clean_cell("keep\ttab") == "keep\ttab"
    assert clean_cell(5.5) == 5.5


def test_build_data_sheet_cleans_cells():
    """Layout rows hold the cleaned text, so widths match what is written."""
    sheet = build_data_sheet("notes", [["Notes"], ["a\x0bb"]])
    assert sheet.rows[1] == ["ab"]


def test_write_workbook_keeps_equals_text_as_string():
    """Text starting with "=" is stored as a string, never as a formula."""
    rows = [["Timestamp", "Notes"], ["2025-01-01 08:00", "=1+1"], ["2025-01-01 09:00", "=HYPERLINK(\"x\")"]]
    layout = WorkbookLayout(
        summary=build_summary_sheet([("notes", 2)]),
        sheets=[build_data_sheet("notes", rows)],
    )
    ws = openpyxl.load_workbook(io.BytesIO(write_workbook(layout)))["notes"]
    assert ws["B2"].value == "=1+1"
    assert ws["B2"].data_type == "s"
    assert ws["B3"].value == "=HYPERLINK(\"x\")"
    assert ws["B3"].data_type == "s"


def test_write_workbook_empty_string_reads_back_as_empty_cell():
    """openpyxl does not store "" values: the layout keeps "", the file holds an empty cell."""
    rows = [["Timestamp", "Notes", "Value"], ["2025-01-01 08:00", "", 5]]
    sheet = build_data_sheet("notes", rows)
    assert sheet.rows[1][1] == ""

    layout = WorkbookLayout(summary=build_summary_sheet([("notes", 1)]), sheets=[sheet])
    ws = openpyxl.load_workbook(io.BytesIO(write_workbook(layout)))["notes"]
    assert ws["B2"].value is None
    assert ws["C2"].value == 5
