from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-run record of datasets that did not make it into the workbook.

The exporter appends one ErrorRecord per skipped dataset; the CLI adds one
more when the whole export fails. flush() appends them as JSON Lines to
<logs_dir>/errors-YYYYMMDD-HHMMSS.log, stamped in UTC on first use. A run
without problems leaves no file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one export run until flush()."""
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the file path, or None when empty."""
        if not self._records:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(record.to_json_line() + "\n" for record in self._records)
        with path.open("a", encoding="utf-8") as out:
            out.write(lines)
        self._records.clear()
        return path
