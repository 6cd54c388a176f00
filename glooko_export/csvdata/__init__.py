"""Parsing and normalization of Glooko export CSV datasets."""

from .columns import (
    COLUMN_MAPPINGS,
    find_column_index,
    get_column_variants,
    normalize_column_name,
)
from .dialect import detect_delimiter, detect_dialect, detect_language
from .merge import merge_csv_contents
from .metadata import format_metadata_for_display, is_valid_metadata, parse_metadata
from .parser import convert_to_delimited_format, parse_cell, parse_csv_table, read_dataset
from .units import detect_glucose_unit, infer_unit

__all__ = [
    "COLUMN_MAPPINGS",
    "convert_to_delimited_format",
    "detect_delimiter",
    "detect_dialect",
    "detect_glucose_unit",
    "detect_language",
    "find_column_index",
    "format_metadata_for_display",
    "get_column_variants",
    "infer_unit",
    "is_valid_metadata",
    "merge_csv_contents",
    "normalize_column_name",
    "parse_cell",
    "parse_csv_table",
    "parse_metadata",
    "read_dataset",
]
