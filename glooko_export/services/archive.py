from __future__ import annotations

import io
import logging
import re
import zipfile
import zlib
from pathlib import Path
from typing import IO, Union

from ..csvdata.dialect import detect_delimiter, split_content_lines
from ..csvdata.metadata import parse_metadata
from ..csvdata.units import detect_glucose_unit
from ..models.archive import CsvFileMetadata, ZipMetadata

"""ZIP archive validation for Glooko exports.

extract_zip_metadata() inspects an uploaded archive and describes the
datasets it contains. Its result is the input contract of the exporter
(services.exporter.convert_zip_to_xlsx):

- only non-directory *.csv entries count
- every CSV must carry the same metadata line
- shards named <set>_data_<n>.csv with identical headers become one dataset
- CGM and BG datasets must agree on the glucose unit

Validation problems are reported through ZipMetadata.is_valid / error, never
raised.
"""

__all__ = [
    "ZipSource",
    "open_zip",
    "read_entry_text",
    "extract_base_name",
    "extract_zip_metadata",
]

logger = logging.getLogger(__name__)

ZipSource = Union[bytes, bytearray, str, Path, IO[bytes]]

_DATA_SHARD_RE = re.compile(r"^(.+?)_data_(\d+)$")
_SIMPLE_SHARD_RE = re.compile(r"^(.+?)_(\d+)$")
_CSV_EXT_RE = re.compile(r"\.csv$", re.IGNORECASE)


def open_zip(source: ZipSource) -> zipfile.ZipFile:
    """Open a new ZipFile handle over bytes, a path or a binary stream."""
    if isinstance(source, (bytes, bytearray)):
        return zipfile.ZipFile(io.BytesIO(bytes(source)))
    return zipfile.ZipFile(source)


def read_entry_text(zf: zipfile.ZipFile, name: str) -> str:
    """Read an entry as UTF-8 text without a leading BOM."""
    text = zf.read(name).decode("utf-8", errors="replace")
    return text.lstrip("\ufeff")


def extract_base_name(file_name: str) -> str:
    """'cgm_data_1.csv' -> 'cgm', 'insulin_2.csv' -> 'insulin', else the stem."""
    stem = _CSV_EXT_RE.sub("", file_name)
    m = _DATA_SHARD_RE.match(stem)
    if m:
        return m.group(1)
    m = _SIMPLE_SHARD_RE.match(stem)
    if m:
        return m.group(1)
    return stem


def _shard_sort_key(entry: str) -> tuple[int, str]:
    # numeric shard order: cgm_data_2.csv before cgm_data_10.csv
    stem = _CSV_EXT_RE.sub("", entry.rsplit("/", 1)[-1])
    m = _DATA_SHARD_RE.match(stem) or _SIMPLE_SHARD_RE.match(stem)
    return (int(m.group(2)) if m else 0, entry)


def _parse_csv_content(content: str) -> tuple[str, list[str], int, str | None]:
    """Return (metadata line, header columns, data row count, glucose unit)."""
    if not content or not content.strip():
        return "", [], 0, None
    lines = split_content_lines(content)
    delimiter = detect_delimiter(content)
    metadata_line = lines[0].strip() if lines else ""
    header_line = lines[1].strip() if len(lines) > 1 else ""
    columns = [c.strip() for c in header_line.split(delimiter.value)] if header_line else []
    columns = [c for c in columns if c]
    return metadata_line, columns, max(0, len(lines) - 2), detect_glucose_unit(columns)


def _group_csv_files(files: list[CsvFileMetadata]) -> list[CsvFileMetadata]:
    groups: dict[str, list[CsvFileMetadata]] = {}
    for f in files:
        groups.setdefault(extract_base_name(f.name), []).append(f)

    grouped: list[CsvFileMetadata] = []
    for base_name, members in groups.items():
        if len(members) == 1:
            only = members[0]
            grouped.append(
                CsvFileMetadata(
                    name=base_name,
                    row_count=only.row_count,
                    column_names=only.column_names,
                    glucose_unit=only.glucose_unit,
                    file_count=1,
                    source_files=only.source_files or [only.name],
                )
            )
            continue
        columns = members[0].column_names
        if not all(m.column_names == columns for m in members):
            # mismatching headers: keep the shards as separate datasets
            logger.debug(f"archive: '{base_name}' shards differ in header, not merged")
            grouped.extend(members)
            continue
        source_files = sorted(
            (s for m in members for s in (m.source_files or [m.name])),
            key=_shard_sort_key,
        )
        grouped.append(
            CsvFileMetadata(
                name=base_name,
                row_count=sum(m.row_count for m in members),
                column_names=columns,
                glucose_unit=members[0].glucose_unit,
                file_count=len(members),
                source_files=source_files,
            )
        )
    grouped.sort(key=lambda f: f.name.casefold())
    return grouped


def _check_unit_consistency(datasets: list[CsvFileMetadata]) -> str | None:
    by_name = {d.name: d for d in datasets}
    cgm, bg = by_name.get("cgm"), by_name.get("bg")
    if cgm and bg and cgm.glucose_unit and bg.glucose_unit and cgm.glucose_unit != bg.glucose_unit:
        return (
            f"Inconsistent glucose units: CGM uses {cgm.glucose_unit} but BG uses "
            f"{bg.glucose_unit}. All datasets must use the same unit."
        )
    return None


def extract_zip_metadata(source: ZipSource) -> ZipMetadata:
    """Validate an archive and describe its datasets (never raises)."""
    try:
        with open_zip(source) as zf:
            entries = [
                info.filename for info in zf.infolist()
                if not info.is_dir() and info.filename.lower().endswith(".csv")
            ]
            if not entries:
                return ZipMetadata.invalid("No CSV files found in ZIP archive")

            csv_files: list[CsvFileMetadata] = []
            shared_metadata_line: str | None = None
            for entry in entries:
                metadata_line, columns, row_count, unit = _parse_csv_content(read_entry_text(zf, entry))
                if shared_metadata_line is None:
                    shared_metadata_line = metadata_line
                elif shared_metadata_line != metadata_line:
                    return ZipMetadata.invalid("Not all CSV files have the same metadata line")
                csv_files.append(
                    CsvFileMetadata(
                        name=entry.rsplit("/", 1)[-1],
                        row_count=row_count,
                        column_names=columns,
                        glucose_unit=unit,
                        source_files=[entry],
                    )
                )
    # RuntimeError: encrypted entry or unsupported compression
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError, RuntimeError, zlib.error) as e:
        logger.debug(f"archive: failed to read ZIP: {e}")
        return ZipMetadata.invalid(str(e) or "Failed to process ZIP file")

    datasets = _group_csv_files(csv_files)
    unit_error = _check_unit_consistency(datasets)
    if unit_error:
        return ZipMetadata.invalid(unit_error)

    return ZipMetadata(
        is_valid=True,
        csv_files=datasets,
        metadata_line=shared_metadata_line,
        parsed_metadata=parse_metadata(shared_metadata_line) if shared_metadata_line else None,
    )

