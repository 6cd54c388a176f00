from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .dialect import DatasetDialect

"""Dataset domain models for the Glooko export pipeline.

RawDatasetFile: one CSV entry read from the uploaded ZIP archive.
DatasetMetadata: the structured first line of a dataset file.
NormalizedRow: a data row keyed by canonical column names.
MergedDataset: the logical union of the shards of one named dataset.
ParsedDataset: a single file after dialect/metadata/column resolution.

All of these live for a single export operation and are never persisted.
"""

__all__ = [
    "Cell",
    "RawDatasetFile",
    "DatasetMetadata",
    "NormalizedRow",
    "MergedDataset",
    "DatasetFrozenError",
    "ParsedDataset",
]

Cell = Union[int, float, str]


class DatasetFrozenError(Exception):
    """Raised when rows are appended to a MergedDataset after freeze()."""


@dataclass(frozen=True)
class RawDatasetFile:
    """A CSV entry extracted from the ZIP archive."""
    file_name: str  # Full entry path inside the archive
    content: str  # Decoded UTF-8 text
    is_shard: bool = False  # True when part of a multi-file dataset


@dataclass(frozen=True)
class DatasetMetadata:
    """Fields parsed from a dataset's metadata line.

    Every field may independently be absent. A record without ``name`` and
    ``date_range`` is considered empty/invalid.
    """
    name: str | None = None
    date_range: str | None = None
    start_date: str | None = None  # ISO YYYY-MM-DD
    end_date: str | None = None  # ISO YYYY-MM-DD

    def to_dict(self) -> dict[str, str]:
        """Return only the keys that are present."""
        data: dict[str, str] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.date_range is not None:
            data["dateRange"] = self.date_range
        if self.start_date is not None:
            data["startDate"] = self.start_date
        if self.end_date is not None:
            data["endDate"] = self.end_date
        return data


@dataclass(frozen=True)
class NormalizedRow:
    """A data row whose columns carry canonical semantic names.

    Cell order is the original file order.
    """
    columns: tuple[str, ...]
    values: tuple[Cell, ...]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self.values[self.columns.index(key)]
        except (ValueError, IndexError):
            return default

    def as_dict(self) -> dict[str, Cell]:
        # Duplicate canonical names keep the first occurrence
        result: dict[str, Cell] = {}
        for col, val in zip(self.columns, self.values, strict=False):
            result.setdefault(col, val)
        return result


@dataclass
class MergedDataset:
    """Incrementally built union of the shards of one named dataset.

    The first appended shard contributes its metadata line, header line and
    data rows. Every later shard contributes only its non-blank data rows
    (lines 3+). Rows keep shard-major order.
    """
    name: str
    lines: list[str] = field(default_factory=list)
    shard_count: int = 0
    frozen: bool = False

    def append_shard(self, content: str) -> None:
        if self.frozen:
            raise DatasetFrozenError(f"dataset '{self.name}' is frozen")
        if self.shard_count == 0:
            self.lines.extend(content.split("\n"))
        else:
            if self.lines and self.lines[-1] == "":
                # trailing newline of the previous shard
                self.lines.pop()
            for line in content.split("\n")[2:]:
                if line.strip():
                    self.lines.append(line)
        self.shard_count += 1

    @property
    def metadata_line(self) -> str:
        return self.lines[0] if self.lines else ""

    @property
    def header_line(self) -> str:
        return self.lines[1] if len(self.lines) > 1 else ""

    def freeze(self) -> str:
        """Freeze the dataset and return its merged text."""
        self.frozen = True
        return "\n".join(self.lines)


@dataclass(frozen=True)
class ParsedDataset:
    """A single dataset file after dialect, metadata and column resolution."""
    file_name: str
    dialect: DatasetDialect
    metadata: DatasetMetadata
    header: list[str]
    columns: list[str]  # Canonical column names, same order as header
    glucose_unit: str | None
    rows: list[NormalizedRow]
