from __future__ import annotations

from collections.abc import Sequence

from ..models.dialect import DatasetDialect, Delimiter, Language

"""Dialect detection for Glooko export CSV files.

Line 1 of every dataset file is a metadata line, line 2 is the header row.
Both the delimiter and the header language are inferred from line 2 only,
once per file.

Ambiguity never raises. It is resolved by the policy objects below:
- fewer than 2 lines -> DEFAULT_DELIMITER
- comma count not strictly greater than tab count -> tab
- German indicator count not strictly greater than English -> English
"""

__all__ = [
    "DEFAULT_DELIMITER",
    "DEFAULT_LANGUAGE",
    "GERMAN_INDICATORS",
    "ENGLISH_INDICATORS",
    "split_content_lines",
    "resolve_delimiter_tie",
    "resolve_language_tie",
    "detect_delimiter",
    "detect_language",
    "detect_dialect",
]

DEFAULT_DELIMITER = Delimiter.TAB
DEFAULT_LANGUAGE = Language.EN

GERMAN_INDICATORS: tuple[str, ...] = (
    "zeitstempel",
    "glukosewert",
    "insulin-typ",
    "dauer (minuten)",
    "abgegebenes insulin",
    "kohlenhydrataufnahme",
    "seriennummer",
    "alarm/ereignis",
)

ENGLISH_INDICATORS: tuple[str, ...] = (
    "timestamp",
    "glucose value",
    "insulin type",
    "duration (min)",
    "dose (units)",
    "carbs (g)",
    "serial number",
    "alarm/event",
)


def split_content_lines(content: str) -> list[str]:
    """Trim the whole blob and split it into lines on LF."""
    return content.lstrip("\ufeff").strip().split("\n")


def resolve_delimiter_tie(tab_count: int, comma_count: int) -> Delimiter:
    """Comma only when it strictly outnumbers tabs; tab wins ties (incl. 0 vs 0)."""
    return Delimiter.COMMA if comma_count > tab_count else DEFAULT_DELIMITER


def resolve_language_tie(german_count: int, english_count: int) -> Language:
    """German only with strictly more indicator matches; English wins ties."""
    return Language.DE if german_count > english_count else DEFAULT_LANGUAGE


def detect_delimiter(content: str) -> Delimiter:
    lines = split_content_lines(content)
    if len(lines) < 2:
        return DEFAULT_DELIMITER
    header_line = lines[1]
    return resolve_delimiter_tie(header_line.count("\t"), header_line.count(","))


def _count_indicators(lower_headers: list[str], indicators: Sequence[str]) -> int:
    # each indicator counts once, however many headers contain it
    return sum(1 for ind in indicators if any(ind in h for h in lower_headers))


def detect_language(column_headers: Sequence[str] | None) -> Language:
    """Detect the language of already-split column headers."""
    if not column_headers:
        return DEFAULT_LANGUAGE
    lower_headers = [h.lower() for h in column_headers]
    german = _count_indicators(lower_headers, GERMAN_INDICATORS)
    english = _count_indicators(lower_headers, ENGLISH_INDICATORS)
    return resolve_language_tie(german, english)


def detect_dialect(content: str) -> DatasetDialect:
    """Detect (delimiter, language) for one dataset file."""
    delimiter = detect_delimiter(content)
    lines = split_content_lines(content)
    headers = lines[1].split(delimiter.value) if len(lines) > 1 else []
    return DatasetDialect(delimiter=delimiter, language=detect_language([h.strip() for h in headers]))
