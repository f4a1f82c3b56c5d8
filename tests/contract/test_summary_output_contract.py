from __future__ import annotations

import re
from pathlib import Path

from roster_ingest.cli.__main__ import main as cli_main

"""SUMMARY line format contract.

SUMMARY saved=<n> classes=<n> auto_generated=<n> skipped=<n> written=<n> elapsed_sec=<float>
"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+saved=([0-9]+)\s+classes=([0-9]+)\s+auto_generated=([0-9]+)\s+"
    r"skipped=([0-9]+)\s+written=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY saved=42 classes=3 auto_generated=5 skipped=2 written=42 elapsed_sec=0.84"
    assert SUMMARY_PATTERN.match(line), "SUMMARY line should match contract regex"


def test_summary_pattern_rejects_reordered_keys():
    line = "SUMMARY classes=3 saved=42 auto_generated=5 skipped=2 written=42 elapsed_sec=1"
    assert not SUMMARY_PATTERN.match(line)


def test_cli_emits_exactly_one_contract_line(write_config: Path, write_csv, capsys):
    path = write_csv("Admission Number,Student Name,Class\nADM001,Ann,Class 1\n,Bob,Class 2\nADM3,,Class 1\n")
    cli_main([str(path), "--dry-run"])

    lines = [l for l in capsys.readouterr().out.splitlines() if l.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m
    saved, classes, auto, skipped, written = (int(g) for g in m.groups()[:5])
    assert (saved, classes, auto, skipped, written) == (2, 2, 1, 1, 0)
