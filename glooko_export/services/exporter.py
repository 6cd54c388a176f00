from __future__ import annotations

import logging
import re
import zipfile
import zlib
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from openpyxl.utils.exceptions import IllegalCharacterError

from ..config.loader import ExportConfig, default_config
from ..csvdata.parser import parse_csv_table
from ..excel.writer import build_data_sheet, build_summary_sheet, write_workbook
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.archive import CsvFileMetadata, ZipMetadata
from ..models.dataset import MergedDataset, RawDatasetFile
from ..models.export_result import XLSX_EXTENSION, ExportResult, SkippedDataset
from ..models.workbook import SheetLayout, WorkbookLayout
from .archive import ZipSource, open_zip, read_entry_text
from .progress import ProgressTracker

"""Spreadsheet export orchestration.

convert_zip_to_xlsx() turns a validated Glooko export archive into one XLSX
workbook: a Summary sheet (always first) plus one sheet per dataset.

Per dataset:
1. Summary row (dataset name, declared row count; never recomputed)
2. Source content: declared source files merged shard-major, or a single
   file located by name (<name>_data_<N>.csv, else any *.csv containing
   the name)
3. Delimiter detected on the (merged) content's own header line
4. Cells parsed into numbers/strings and laid out with column formatting

A dataset whose source cannot be found or read does not abort the export
under the default "skip" policy: the sheet is omitted and the dataset is
reported in ExportResult.skipped_datasets (and the error log). With
missing_source_policy "fail" the whole export raises ExportError instead.

Each call opens its own ZIP handle and builds its own workbook; nothing is
shared between concurrent exports.
"""

__all__ = [
    "ExportError",
    "SKIP_SOURCE_NOT_FOUND",
    "SKIP_SOURCE_UNREADABLE",
    "SKIP_EMPTY_CONTENT",
    "find_csv_file_name",
    "convert_zip_to_xlsx",
    "save_workbook",
]

logger = logging.getLogger(__name__)

SKIP_SOURCE_NOT_FOUND = "SOURCE_NOT_FOUND"
SKIP_SOURCE_UNREADABLE = "SOURCE_UNREADABLE"
SKIP_EMPTY_CONTENT = "EMPTY_CONTENT"


class ExportError(Exception):
    """Hard export failure; no artifact is produced."""


def find_csv_file_name(file_names: Sequence[str], dataset_name: str) -> str | None:
    """Locate the single source file of a dataset inside the archive."""
    pattern = re.compile(rf"{re.escape(dataset_name)}_data_\d+\.csv$", re.IGNORECASE)
    for name in file_names:
        if pattern.search(name):
            return name
    lower = dataset_name.lower()
    for name in file_names:
        if lower in name.lower() and name.lower().endswith(".csv"):
            return name
    return None


class _DatasetSkipped(Exception):
    def __init__(self, reason: str, message: str, source_files: list[str]) -> None:
        super().__init__(message)
        self.reason = reason
        self.source_files = source_files


def _read_shards(zf: zipfile.ZipFile, dataset: CsvFileMetadata, error_log: ErrorLogBuffer,
                 archive_name: str, fail_on_missing: bool) -> list[RawDatasetFile]:
    names = set(zf.namelist())
    declared = list(dataset.source_files or [])
    shards: list[RawDatasetFile] = []
    for source in declared:
        if source not in names:
            message = f"source file '{source}' not found in archive"
            if fail_on_missing:
                raise ExportError(f"dataset '{dataset.name}': {message}")
            logger.warning(f"dataset '{dataset.name}': {message}")
            error_log.append(ErrorRecord.create(archive_name, dataset.name, source, SKIP_SOURCE_NOT_FOUND, message))
            continue
        try:
            content = read_entry_text(zf, source)
        except (zipfile.BadZipFile, OSError, RuntimeError, zlib.error) as e:
            raise _DatasetSkipped(SKIP_SOURCE_UNREADABLE, f"failed to read '{source}': {e}", declared) from e
        shards.append(RawDatasetFile(file_name=source, content=content, is_shard=len(declared) > 1))
    return shards


def _load_dataset_content(zf: zipfile.ZipFile, dataset: CsvFileMetadata, error_log: ErrorLogBuffer,
                          archive_name: str, fail_on_missing: bool) -> str:
    """Return the full text of one dataset (merged when it spans several files)."""
    if dataset.source_files:
        shards = _read_shards(zf, dataset, error_log, archive_name, fail_on_missing)
        if not shards:
            raise _DatasetSkipped(SKIP_SOURCE_NOT_FOUND, "none of the declared source files exist",
                                  list(dataset.source_files))
        merged = MergedDataset(name=dataset.name)
        for shard in shards:
            merged.append_shard(shard.content)
        return merged.freeze()

    file_name = find_csv_file_name(zf.namelist(), dataset.name)
    if file_name is None:
        raise _DatasetSkipped(SKIP_SOURCE_NOT_FOUND, "no matching CSV file in archive", [])
    try:
        return read_entry_text(zf, file_name)
    except (zipfile.BadZipFile, OSError, RuntimeError, zlib.error) as e:
        raise _DatasetSkipped(SKIP_SOURCE_UNREADABLE, f"failed to read '{file_name}': {e}", [file_name]) from e


def convert_zip_to_xlsx(
    zip_source: ZipSource,
    zip_metadata: ZipMetadata,
    config: ExportConfig | None = None,
    *,
    archive_name: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> ExportResult:
    """Build the XLSX export artifact from a validated archive.

    Args:
        zip_source: Archive bytes, path or binary stream
        zip_metadata: Result of services.archive.extract_zip_metadata()
        config: Export configuration (defaults when None)
        archive_name: Name used in error records
        error_log: Buffer receiving skip records (a private one when None)

    Returns:
        ExportResult with the XLSX bytes and any skipped datasets

    Raises:
        ExportError: invalid metadata, unreadable archive, a missing source
            under the "fail" policy, or workbook serialization failure
    """
    if not zip_metadata or not zip_metadata.is_valid:
        raise ExportError("Cannot convert invalid ZIP file to XLSX")

    cfg = config or default_config()
    error_log = error_log if error_log is not None else ErrorLogBuffer(Path(cfg.logs_directory))
    start_time = datetime.now(UTC)

    summary_rows: list[tuple[str, int]] = []
    sheets: list[SheetLayout] = []
    skipped: list[SkippedDataset] = []

    try:
        zf = open_zip(zip_source)
    except (zipfile.BadZipFile, OSError) as e:
        raise ExportError(f"failed to open ZIP archive: {e}") from e

    with zf, ProgressTracker(len(zip_metadata.csv_files)) as progress:
        for dataset in zip_metadata.csv_files:
            progress.start_dataset(dataset.name)
            summary_rows.append((dataset.name, dataset.row_count))
            try:
                content = _load_dataset_content(zf, dataset, error_log, archive_name, cfg.fail_on_missing_source)
                if not content:
                    raise _DatasetSkipped(SKIP_EMPTY_CONTENT, "dataset content is empty",
                                          list(dataset.source_files or []))
            except _DatasetSkipped as skip:
                if cfg.fail_on_missing_source:
                    raise ExportError(f"dataset '{dataset.name}': {skip}") from skip
                logger.warning(f"dataset '{dataset.name}' skipped: {skip}")
                error_log.append(ErrorRecord.create(
                    archive_name, dataset.name, ",".join(skip.source_files), skip.reason, str(skip)
                ))
                skipped.append(SkippedDataset(name=dataset.name, reason=skip.reason, source_files=skip.source_files))
                progress.finish_dataset(exported=False)
                continue

            rows = parse_csv_table(content)
            sheet = build_data_sheet(dataset.name, rows, [s.name for s in sheets], cfg.formatting)
            sheets.append(sheet)
            logger.debug(f"dataset '{dataset.name}' -> sheet '{sheet.name}' rows={sheet.data_row_count}")
            progress.finish_dataset(exported=True)

    layout = WorkbookLayout(summary=build_summary_sheet(summary_rows, cfg.formatting), sheets=sheets)
    try:
        content_bytes = write_workbook(layout, cfg.formatting)
    except (OSError, ValueError, IllegalCharacterError) as e:
        raise ExportError(f"failed to write workbook: {e}") from e

    return ExportResult(
        content=content_bytes,
        sheet_names=layout.sheet_names,
        summary_rows=summary_rows,
        skipped_datasets=skipped,
        start_time=start_time,
        end_time=datetime.now(UTC),
    )


def save_workbook(result: ExportResult, directory: Path, base_name: str) -> Path:
    """Write the artifact as <directory>/<base_name>.xlsx and return the path."""
    if not base_name or "/" in base_name or "\\" in base_name:
        raise ExportError(f"invalid output file name: {base_name!r}")
    path = directory / f"{base_name}{XLSX_EXTENSION}"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(result.content)
    except OSError as e:
        raise ExportError(f"failed to save workbook to {path}: {e}") from e
    return path
