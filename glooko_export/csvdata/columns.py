from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType

from ..models.dataset import Cell, NormalizedRow
from ..models.dialect import Language

"""Bilingual column name mapping for Glooko export files.

COLUMN_MAPPINGS maps a canonical column key to the English and German
header fragments that identify it. English is the canonical vocabulary, so
English headers pass through unchanged and German headers are translated
to the first English variant of the first matching key (declaration order).

The table is built once at import time and is read-only.
"""

__all__ = [
    "ColumnVariants",
    "COLUMN_MAPPINGS",
    "NOT_FOUND",
    "normalize_column_name",
    "normalize_headers",
    "normalize_row",
    "find_column_index",
    "get_column_variants",
]

NOT_FOUND = -1


@dataclass(frozen=True)
class ColumnVariants:
    en: tuple[str, ...]
    de: tuple[str, ...]


COLUMN_MAPPINGS: MappingProxyType[str, ColumnVariants] = MappingProxyType({
    "timestamp": ColumnVariants(en=("timestamp",), de=("zeitstempel",)),
    # Glucose
    "glucoseValue": ColumnVariants(en=("glucose value", "glucose"), de=("glukosewert", "cgm-glukosewert")),
    # Insulin
    "insulinType": ColumnVariants(en=("insulin type",), de=("insulin-typ",)),
    "dose": ColumnVariants(
        en=("dose", "delivered"),
        de=("abgegebenes insulin", "anfängliche abgabe", "verzögerte abgabe", "rate"),
    ),
    "basalRate": ColumnVariants(en=("basal rate",), de=("rate", "prozentsatz")),
    "duration": ColumnVariants(en=("duration",), de=("dauer",)),
    # Insulin totals (combined insulin file)
    "totalBolus": ColumnVariants(en=("total bolus",), de=("bolus gesamt",)),
    "totalBasal": ColumnVariants(en=("total basal",), de=("basal gesamt",)),
    "totalInsulin": ColumnVariants(en=("total insulin",), de=("insulin gesamt",)),
    # Bolus
    "bolusType": ColumnVariants(en=("bolus type",), de=("insulin-typ",)),
    "carbs": ColumnVariants(en=("carbs",), de=("kh", "kohlenhydrataufnahme")),
    # Food
    "foodDescription": ColumnVariants(en=("food description",), de=("name",)),
    "protein": ColumnVariants(en=("protein",), de=("eiweiß",)),
    "fat": ColumnVariants(en=("fat",), de=("fett",)),
    # Exercise
    "activityType": ColumnVariants(en=("activity type",), de=("name",)),
    "intensity": ColumnVariants(en=("intensity",), de=("intensität",)),
    # Medication
    "medicationName": ColumnVariants(en=("medication name",), de=("name",)),
    "dosage": ColumnVariants(en=("dosage",), de=("wert",)),
    # Alarms
    "alarmEvent": ColumnVariants(en=("alarm/event",), de=("alarm/ereignis",)),
    "serialNumber": ColumnVariants(en=("serial number",), de=("seriennummer",)),
    # Manual BG
    "device": ColumnVariants(en=("device",), de=("manuelles lesen", "seriennummer")),
    "notes": ColumnVariants(en=("notes",), de=("seriennummer", "wert")),
})


def normalize_column_name(column_name: str, language: Language = Language.EN) -> str:
    """Return the canonical (English) name for a header, or the header unchanged."""
    if language is Language.EN:
        return column_name
    lower = column_name.lower().strip()
    for variants in COLUMN_MAPPINGS.values():
        if any(de in lower for de in variants.de):
            return variants.en[0]
    return column_name


def normalize_headers(headers: Sequence[str], language: Language) -> list[str]:
    return [normalize_column_name(h, language) for h in headers]


def normalize_row(headers: Sequence[str], cells: Sequence[Cell], language: Language) -> NormalizedRow:
    """Key one data row by canonical column names, keeping cell order.

    The language is the file's detected language and applies to every row.
    """
    return NormalizedRow(columns=tuple(normalize_headers(headers, language)), values=tuple(cells))


def find_column_index(headers: Sequence[str], search_terms: Sequence[str]) -> int:
    """Index of the first header containing any search term, else NOT_FOUND (-1)."""
    for idx, header in enumerate(headers):
        lower = header.lower().strip()
        if any(term in lower for term in search_terms):
            return idx
    return NOT_FOUND


def get_column_variants(column_type: str) -> list[str]:
    """All English then German variants for a canonical key ([] if unknown)."""
    variants = COLUMN_MAPPINGS.get(column_type)
    if variants is None:
        return []
    return [*variants.en, *variants.de]
