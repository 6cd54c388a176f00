from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Dialect models for Glooko export datasets.

A dataset's dialect is the pair (field delimiter, header language). It is
detected once per file from the header line and then applied to every row
of that file.
"""

__all__ = [
    "Delimiter",
    "Language",
    "DatasetDialect",
]


class Delimiter(Enum):
    """Field delimiter of a dataset file."""
    TAB = "\t"
    COMMA = ","


class Language(Enum):
    """Language of a dataset's column headers.

    English is the canonical vocabulary; German headers are translated.
    """
    EN = "en"
    DE = "de"


@dataclass(frozen=True)
class DatasetDialect:
    delimiter: Delimiter
    language: Language

    def split(self, line: str) -> list[str]:
        """Split one line of the file with this dialect's delimiter."""
        return line.split(self.delimiter.value)
