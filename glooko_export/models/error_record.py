from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the export error log.

Each record describes one dataset that could not be exported (or a
hard failure of the whole export). Records are written as JSON Lines with a
fixed key set: timestamp, archive, dataset, source_file, error_type, message.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        archive: ZIP archive name being exported
        dataset: Dataset name, or "" for archive-level errors
        source_file: Archive entry involved, or "" when unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str
    archive: str
    dataset: str
    source_file: str
    error_type: str
    message: str

    @staticmethod
    def create(archive: str, dataset: str, source_file: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            archive=archive,
            dataset=dataset,
            source_file=source_file,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
