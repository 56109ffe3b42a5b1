from __future__ import annotations

import re
from pathlib import Path

from price_import.cli import main as cli_main

"""SUMMARY line format contract."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+files=([0-9]+)/(\1)\s+success=([0-9]+)\s+failed=([0-9]+)\s+"
    r"rows=([0-9]+)\s+avg_confidence=([0-9]\.[0-9]{2})\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY files=2/2 success=1 failed=1 rows=40 avg_confidence=0.88 elapsed_sec=0.84"
    assert SUMMARY_PATTERN.match(line)


def test_cli_summary_line_matches_contract(write_config, temp_workdir: Path, xlsx_factory, price_list_rows, capsys):
    xlsx_factory("rossi.xlsx", price_list_rows)
    (temp_workdir / "data" / "broken.xlsx").write_bytes(b"")
    cli_main([])
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m, lines[0]
    assert m.group(1) == "2"
    assert m.group(3) == "1"
    assert m.group(4) == "1"
    assert m.group(5) == "3"
    assert m.group(6) == "0.88"
