from __future__ import annotations

from pathlib import Path

from ..models.export_result import ExportResult

"""SUMMARY line rendering for the export CLI.

Format:
SUMMARY datasets={n} sheets={m} skipped={k} rows={rows} elapsed_sec={sec} output={path}

`sheets` counts data sheets only (the Summary sheet is not included) and
`rows` is the sum of the declared row counts.
"""

__all__ = [
    "format_seconds",
    "render_summary_body",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Integers without decimals, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_body(result: ExportResult, output_path: Path | None = None) -> str:
    """The SUMMARY fields without the label (log_summary adds it)."""
    return (
        f"datasets={len(result.summary_rows)} "
        f"sheets={len(result.sheet_names) - 1} "
        f"skipped={len(result.skipped_datasets)} "
        f"rows={result.total_rows} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)} "
        f"output={output_path if output_path is not None else '-'}"
    )


def render_summary_line(result: ExportResult, output_path: Path | None = None) -> str:
    """Render the SUMMARY line for a finished export.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2025, 1, 1, tzinfo=timezone.utc)
        >>> r = ExportResult(content=b"", sheet_names=["Summary", "cgm"],
        ...     summary_rows=[("cgm", 12)], skipped_datasets=[],
        ...     start_time=t, end_time=t)
        >>> render_summary_line(r)
        'SUMMARY datasets=1 sheets=1 skipped=0 rows=12 elapsed_sec=0 output=-'
    """
    return f"SUMMARY {render_summary_body(result, output_path)}"
