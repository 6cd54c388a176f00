from __future__ import annotations

import re
from pathlib import Path

from glooko_export.cli import main as cli_main

"""SUMMARY line format contract.

SUMMARY datasets=N sheets=M skipped=K rows=R elapsed_sec=E output=PATH
"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+datasets=([0-9]+)\s+sheets=([0-9]+)\s+skipped=([0-9]+)\s+"
    r"rows=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+output=(\S+)$"
)


def test_summary_pattern_example_line():
    """The documented example line matches the contract regex."""
    line = "SUMMARY datasets=3 sheets=2 skipped=1 rows=594 elapsed_sec=0.84 output=out/report.xlsx"
    m = SUMMARY_PATTERN.match(line)
    assert m, "SUMMARY line should match contract regex"
    datasets, sheets, skipped = (int(m.group(i)) for i in (1, 2, 3))
    assert sheets + skipped == datasets


def test_cli_summary_line_matches_contract(write_config, write_archive: Path, capsys):
    """The CLI prints exactly one SUMMARY line in contract format."""
    code = cli_main([str(write_archive)])
    out = capsys.readouterr().out
    assert code == 0
    lines = [line for line in out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m, lines[0]
    assert m.group(1) == "2"
    assert m.group(2) == "2"
    assert m.group(3) == "0"
    assert m.group(4) == "7"
    assert Path(m.group(6)) == Path("out") / "report.xlsx"
