from __future__ import annotations

import re
from collections.abc import Sequence

from .columns import NOT_FOUND, find_column_index, get_column_variants

"""Glucose unit inference and conversion.

Units are read from the parenthesised fragment of a header, e.g.
"Glucose Value (mmol/L)" or "Glukosewert (mg/dl)". An unknown unit is not
an error: inference returns None.
"""

__all__ = [
    "MG_DL",
    "MMOL_L",
    "MMOL_TO_MGDL",
    "infer_unit",
    "detect_glucose_unit",
    "mmol_to_mgdl",
    "mgdl_to_mmol",
]

MG_DL = "mg/dL"
MMOL_L = "mmol/L"

# 1 mmol/L glucose = 18.018 mg/dL
MMOL_TO_MGDL = 18.018

_PAREN_RE = re.compile(r"\(([^)]+)\)")


def infer_unit(header: str) -> str | None:
    m = _PAREN_RE.search(header)
    if not m:
        return None
    unit_text = m.group(1).lower().strip()
    if "mg" in unit_text and "dl" in unit_text:
        return MG_DL
    if "mmol" in unit_text:
        return MMOL_L
    return None


def detect_glucose_unit(column_headers: Sequence[str]) -> str | None:
    """Unit of the first glucose column (English or German header), or None."""
    idx = find_column_index(column_headers, get_column_variants("glucoseValue"))
    if idx == NOT_FOUND:
        return None
    return infer_unit(column_headers[idx])


def mmol_to_mgdl(mmol_value: float) -> int:
    return round(mmol_value * MMOL_TO_MGDL)


def mgdl_to_mmol(mgdl_value: float) -> float:
    return round(mgdl_value / MMOL_TO_MGDL, 1)
