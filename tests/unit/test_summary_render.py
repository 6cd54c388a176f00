from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from glooko_export.models.export_result import ExportResult, SkippedDataset
from glooko_export.services.summary import format_seconds, render_summary_body, render_summary_line


def _result(elapsed: float, skipped: int = 0) -> ExportResult:
    start = datetime(2025, 1, 1, tzinfo=UTC)
    names = ["Summary", "bolus", "cgm"][: 3 - skipped]
    return ExportResult(
        content=b"",
        sheet_names=names,
        summary_rows=[("bolus", 2), ("cgm", 5)],
        skipped_datasets=[SkippedDataset("cgm", "SOURCE_NOT_FOUND")] if skipped else [],
        start_time=start,
        end_time=start + timedelta(seconds=elapsed),
    )


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0"),
        (3.0, "3"),
        (1.5, "1.5"),
        (0.84, "0.84"),
        (1.23456, "1.235"),
        (0.000123, "0.000123"),
    ],
)
def test_format_seconds(value: float, expected: str):
    """Elapsed seconds drop trailing zeros and never use exponent notation."""
    assert format_seconds(value) == expected


def test_render_summary_line_success():
    """All datasets exported: sheets counts data sheets only."""
    line = render_summary_line(_result(1.5), Path("out/report.xlsx"))
    assert line == "SUMMARY datasets=2 sheets=2 skipped=0 rows=7 elapsed_sec=1.5 output=out/report.xlsx"


def test_render_summary_line_with_skipped_and_no_output():
    """Skipped datasets are counted and a missing output path renders as -."""
    line = render_summary_line(_result(2, skipped=1))
    assert line == "SUMMARY datasets=2 sheets=1 skipped=1 rows=7 elapsed_sec=2 output=-"


def test_render_summary_body_has_no_label():
    """The body is what log_summary receives; the line adds the SUMMARY label."""
    result = _result(1.5)
    body = render_summary_body(result, Path("report.xlsx"))
    assert body == "datasets=2 sheets=2 skipped=0 rows=7 elapsed_sec=1.5 output=report.xlsx"
    assert render_summary_line(result, Path("report.xlsx")) == f"SUMMARY {body}"
