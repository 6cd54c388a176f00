# Shared pytest fixtures
from __future__ import annotations

import io
import os
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from glooko_export.logging.init import reset_logging

METADATA_LINE_TAB = "Name:Test User\tDate Range:2025-01-01 - 2025-01-31"
CGM_HEADER_EN = "Timestamp\tCGM Glucose Value (mmol/L)\tSerial Number"


def cgm_shard(rows: list[tuple[str, float]], metadata_line: str = METADATA_LINE_TAB) -> str:
    lines = [metadata_line, CGM_HEADER_EN]
    lines.extend(f"{ts}\t{value}\tDXC4B2P" for ts, value in rows)
    return "\n".join(lines) + "\n"


def make_zip_bytes(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_damaged_zip(files: dict[str, str], damaged: str, how: str) -> bytes:
    """Archive whose entry `damaged` cannot be read back.

    how="encrypted": the entry carries the encryption flag bit.
    how="garbage": the entry claims deflate but holds bytes that are no
    valid deflate stream (0xFF starts a reserved block type).
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            if name == damaged and how == "garbage":
                zf.writestr(name, b"\xff" * 64, compress_type=zipfile.ZIP_STORED)
            else:
                zf.writestr(name, content)
        header_offset = zf.getinfo(damaged).header_offset
    data = bytearray(buffer.getvalue())

    # general purpose flags at +6 (local header) and +8 (central directory),
    # compression method right after them
    encoded = damaged.encode("utf-8")
    offsets = [header_offset + 6]
    pos = data.find(b"PK\x01\x02")
    while pos != -1:
        name_len = int.from_bytes(data[pos + 28:pos + 30], "little")
        if bytes(data[pos + 46:pos + 46 + name_len]) == encoded:
            offsets.append(pos + 8)
        pos = data.find(b"PK\x01\x02", pos + 4)
    for off in offsets:
        if how == "encrypted":
            flags = int.from_bytes(data[off:off + 2], "little") | 0x1
            data[off:off + 2] = flags.to_bytes(2, "little")
        elif how == "garbage":
            data[off + 2:off + 4] = zipfile.ZIP_DEFLATED.to_bytes(2, "little")
        else:
            raise ValueError(f"unknown damage: {how}")
    return bytes(data)


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("GLOOKO_EXPORT_CONFIG", raising=False)
        yield p


@pytest.fixture()
def cgm_shards() -> dict[str, str]:
    """Three English, tab-delimited, mmol/L CGM shards (2 + 2 + 1 rows)."""
    return {
        "cgm_data_1.csv": cgm_shard([("2025-01-01 00:00", 5.5), ("2025-01-01 00:05", 5.7)]),
        "cgm_data_2.csv": cgm_shard([("2025-01-01 00:10", 6.1), ("2025-01-01 00:15", 6.4)]),
        "cgm_data_3.csv": cgm_shard([("2025-01-01 00:20", 6.8)]),
    }


@pytest.fixture()
def bolus_file() -> dict[str, str]:
    content = "\n".join([
        METADATA_LINE_TAB,
        "Timestamp\tInsulin Type\tCarbs Input (g)\tInsulin Delivered (U)\tSerial Number",
        "2025-01-01 07:00\tNormal\t45\t4.5\tDXC4B2P",
        "2025-01-01 12:00\tNormal\t60\t6.0\tDXC4B2P",
    ]) + "\n"
    return {"bolus_data_1.csv": content}


@pytest.fixture()
def export_zip_bytes(cgm_shards: dict[str, str], bolus_file: dict[str, str]) -> bytes:
    return make_zip_bytes({**cgm_shards, **bolus_file})


@pytest.fixture()
def zip_factory() -> Callable[[dict[str, str]], bytes]:
    return make_zip_bytes


@pytest.fixture()
def sample_config_yaml() -> str:
    return """output_directory: ./out
output_basename: report
logs_directory: ./logs
missing_source_policy: skip
formatting:
  min_column_width: 12
  summary_column_widths: [24, 16]
  header_fill: DDEEFF
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "export.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_archive(temp_workdir: Path, export_zip_bytes: bytes) -> Path:
    path = temp_workdir / "data" / "export.zip"
    path.write_bytes(export_zip_bytes)
    return path


@pytest.fixture()
def restore_cwd():
    before = os.getcwd()
    yield
    os.chdir(before)
