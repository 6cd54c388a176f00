#!/usr/bin/env python3
"""Demo archive generation script.

Generates a synthetic Glooko-style export ZIP for manual testing of the
XLSX export. Every CSV file follows the export layout:
- Line 1: metadata line (Name:<name><sep>Date Range:<start> - <end>)
- Line 2: header row
- Line 3+: data rows

CGM readings are split over several shards (cgm_data_1.csv, ...) the way
large real exports are.
"""
from __future__ import annotations

import argparse
import io
import sys
import zipfile
from pathlib import Path

import numpy as np
import pandas as pd

HEADERS = {
    "en": {
        "cgm": ["Timestamp", "CGM Glucose Value ({unit})", "Serial Number"],
        "bolus": ["Timestamp", "Insulin Type", "Carbs Input (g)", "Insulin Delivered (U)", "Serial Number"],
        "basal": ["Timestamp", "Insulin Type", "Duration (minutes)", "Rate", "Insulin Delivered (U)", "Serial Number"],
    },
    "de": {
        "cgm": ["Zeitstempel", "CGM-Glukosewert ({unit})", "Seriennummer"],
        "bolus": ["Zeitstempel", "Insulin-Typ", "Kohlenhydrataufnahme (g)", "Abgegebenes Insulin (E)", "Seriennummer"],
        "basal": ["Zeitstempel", "Insulin-Typ", "Dauer (Minuten)", "Rate", "Abgegebenes Insulin (E)", "Seriennummer"],
    },
}
SERIAL = "DXC4B2P"


def _render(rows: list[list[object]], header: list[str], metadata_line: str, delimiter: str) -> str:
    lines = [metadata_line, delimiter.join(header)]
    lines.extend(delimiter.join(str(c) for c in row) for row in rows)
    return "\n".join(lines) + "\n"


def generate_archive(
    name: str,
    days: int,
    shards: int,
    language: str = "en",
    delimiter: str = "\t",
    unit: str = "mmol/L",
    seed: int = 42,
) -> bytes:
    """Build the demo ZIP in memory and return its bytes."""
    rng = np.random.default_rng(seed)
    start = pd.Timestamp("2025-01-01")
    end = start + pd.Timedelta(days=days) - pd.Timedelta(minutes=5)
    metadata_sep = "\t" if delimiter == "\t" else ", "
    metadata_line = f"Name:{name}{metadata_sep}Date Range:{start.date()} - {end.date()}"
    headers = HEADERS[language]
    unit_label = "mg/dl" if unit == "mg/dL" else "mmol/L"
    ts_fmt = "%Y-%m-%d %H:%M"

    # CGM every 5 minutes, sinusoidal day curve plus noise
    times = pd.date_range(start, end, freq="5min")
    minutes = np.arange(len(times)) * 5
    mmol = 7.5 + 2.5 * np.sin(minutes / 1440 * 2 * np.pi) + rng.normal(0, 0.8, len(times))
    mmol = np.clip(mmol, 2.2, 22.0)
    values = np.round(mmol * 18.018).astype(int).tolist() if unit == "mg/dL" else np.round(mmol, 1).tolist()
    cgm_rows = [[t.strftime(ts_fmt), v, SERIAL] for t, v in zip(times, values)]

    meal_hours = [7, 12, 19]
    bolus_rows: list[list[object]] = []
    basal_rows: list[list[object]] = []
    for day in range(days):
        day_start = start + pd.Timedelta(days=day)
        for hour in meal_hours:
            carbs = int(rng.integers(20, 90))
            dose = round(carbs / 10 + float(rng.normal(0, 0.3)), 1)
            ts = (day_start + pd.Timedelta(hours=hour)).strftime(ts_fmt)
            bolus_rows.append([ts, "Normal", carbs, max(dose, 0.1), SERIAL])
        for hour in range(0, 24, 4):
            rate = round(0.6 + float(rng.normal(0, 0.05)), 2)
            ts = (day_start + pd.Timedelta(hours=hour)).strftime(ts_fmt)
            basal_rows.append([ts, "Scheduled", 240, rate, round(rate * 4, 2), SERIAL])

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        cgm_header = [h.format(unit=unit_label) for h in headers["cgm"]]
        for i, chunk in enumerate(np.array_split(np.arange(len(cgm_rows)), shards), start=1):
            part = [cgm_rows[j] for j in chunk.tolist()]
            zf.writestr(f"cgm_data_{i}.csv", _render(part, cgm_header, metadata_line, delimiter))
        zf.writestr("bolus_data_1.csv", _render(bolus_rows, headers["bolus"], metadata_line, delimiter))
        zf.writestr("basal_data_1.csv", _render(basal_rows, headers["basal"], metadata_line, delimiter))
    return buffer.getvalue()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic Glooko export ZIP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 14 days, English, tab-delimited, mmol/L, 3 CGM shards
  %(prog)s demo.zip

  # German, comma-delimited, mg/dL
  %(prog)s demo_de.zip --language de --delimiter comma --unit mg/dL
        """,
    )
    parser.add_argument("output", type=Path, help="Output ZIP path")
    parser.add_argument("--name", default="Demo User", help="Name written to the metadata line")
    parser.add_argument("--days", type=int, default=14, help="Number of days (default: 14)")
    parser.add_argument("--shards", type=int, default=3, help="CGM shard files (default: 3)")
    parser.add_argument("--language", choices=["en", "de"], default="en")
    parser.add_argument("--delimiter", choices=["tab", "comma"], default="tab")
    parser.add_argument("--unit", choices=["mmol/L", "mg/dL"], default="mmol/L")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing")
    args = parser.parse_args()

    if args.days <= 0:
        print("Error: --days must be positive", file=sys.stderr)
        return 1
    if args.shards <= 0:
        print("Error: --shards must be positive", file=sys.stderr)
        return 1

    readings = args.days * 288
    print("Demo archive plan:")
    print(f"  Output file: {args.output}")
    print(f"  Language: {args.language}  delimiter: {args.delimiter}  unit: {args.unit}")
    print(f"  CGM readings: {readings:,} in {args.shards} shard(s)")
    if args.dry_run:
        print("\n[DRY RUN] Would generate the archive but not write it.")
        return 0

    try:
        data = generate_archive(
            args.name,
            args.days,
            args.shards,
            language=args.language,
            delimiter="\t" if args.delimiter == "tab" else ",",
            unit=args.unit,
            seed=args.seed,
        )
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(data)
    except OSError as e:
        print(f"\nError writing archive: {e}", file=sys.stderr)
        return 1
    print(f"\nCreated demo archive: {args.output} ({len(data):,} bytes)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
