"""Domain models for the Glooko export ZIP -> XLSX converter.

This package contains the dataclasses passed between the CSV parsing
pipeline, the ZIP validation step and the spreadsheet exporter.
"""

from .archive import CsvFileMetadata, ZipMetadata
from .dataset import (
    Cell,
    DatasetFrozenError,
    DatasetMetadata,
    MergedDataset,
    NormalizedRow,
    ParsedDataset,
    RawDatasetFile,
)
from .dialect import DatasetDialect, Delimiter, Language
from .error_record import ErrorRecord
from .export_result import ExportResult, SkippedDataset
from .workbook import ColumnFormat, SheetKind, SheetLayout, WorkbookLayout

__all__ = [
    # Archive validation
    "CsvFileMetadata",
    "ZipMetadata",
    # Datasets
    "Cell",
    "DatasetFrozenError",
    "DatasetMetadata",
    "MergedDataset",
    "NormalizedRow",
    "ParsedDataset",
    "RawDatasetFile",
    # Dialect
    "DatasetDialect",
    "Delimiter",
    "Language",
    # Errors
    "ErrorRecord",
    # Export output
    "ExportResult",
    "SkippedDataset",
    "ColumnFormat",
    "SheetKind",
    "SheetLayout",
    "WorkbookLayout",
]
