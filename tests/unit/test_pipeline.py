from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from roster_ingest.config.loader import ImportConfig
from roster_ingest.errors import DecodeError, NoValidRecordsError
from roster_ingest.logging.error_log import ErrorLogBuffer
from roster_ingest.services.pipeline import NO_DATA_MESSAGE, import_roster, parse_roster

TODAY = date(2024, 6, 1)

HEADER = "Admission Number,Student Name,Class,Father Name,Mobile,DOB\n"


class ListStore:
    def __init__(self, fail: Exception | None = None) -> None:
        self.saved: list = []
        self.fail = fail

    def upsert(self, records, conflict_key=("class_id", "admission_number")):
        if self.fail is not None:
            raise self.fail
        self.saved.extend(records)
        return len(records)


def _log_lines(logs_dir: Path) -> list[dict]:
    files = list(logs_dir.glob("errors-*.log"))
    if not files:
        return []
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


def test_parse_roster_collects_records_and_errors(write_csv, registry):
    path = write_csv(
        HEADER
        + "ADM001,John Doe,Class 1,Robert Doe,9876543210,15/05/2018\n"
        + ",,Class 1,,,\n"
        + "ADM002,,Class 1,,,\n"
        + "ADM003,Ann,Class 99,,,\n"
    )
    result = parse_roster(path, registry, today=TODAY)

    assert [r.admission_number for r in result.records] == ["ADM001"]
    assert [e.row_number for e in result.errors] == [4, 5]
    assert result.skipped_rows == 2
    assert result.auto_generated_count == 0
    assert result.classes_touched == frozenset({"Class 1"})


def test_parse_roster_dedups_last_wins(write_csv, registry):
    path = write_csv(HEADER + "A1,First,Class 1,,,\nA1,Second,Class 1,,,\n")
    result = parse_roster(path, registry, today=TODAY)
    assert len(result.records) == 1
    assert result.records[0].full_name == "Second"


def test_parse_roster_same_input_same_ids(write_csv, registry):
    path = write_csv(HEADER + ",Jane Roe,Class 1,,,\n")
    first = parse_roster(path, registry, today=TODAY)
    second = parse_roster(path, registry, today=TODAY)
    assert first.records[0].admission_number == second.records[0].admission_number


def test_import_roster_writes_and_reports(write_csv, registry, temp_workdir: Path):
    path = write_csv(HEADER + "ADM001,John Doe,Class 1,,,\n,Jane Roe,Class 1,,,\n")
    store = ListStore()

    report = import_roster(path, registry, store, today=TODAY)

    assert report.written == 2
    assert report.total_chunks == 1
    assert report.succeeded
    assert report.dry_run is False
    assert report.result.auto_generated_count == 1
    assert [r.full_name for r in store.saved] == ["John Doe", "Jane Roe"]
    # no row errors, no log file
    assert _log_lines(temp_workdir / "logs") == []


def test_import_roster_dry_run_writes_nothing(write_csv, registry):
    path = write_csv(HEADER + "ADM001,John Doe,Class 1,,,\n")
    report = import_roster(path, registry, None, today=TODAY)
    assert report.dry_run is True
    assert report.written == 0
    assert len(report.result.records) == 1


def test_import_roster_row_errors_logged(write_csv, registry, temp_workdir: Path):
    path = write_csv(HEADER + "ADM001,John Doe,Class 1,,,\nADM002,Ann,Class 99,,,\n")
    import_roster(path, registry, ListStore(), today=TODAY)

    lines = _log_lines(temp_workdir / "logs")
    assert len(lines) == 1
    assert lines[0]["error_type"] == "UNRESOLVED_CLASS"
    assert lines[0]["file"] == "roster.csv"
    assert lines[0]["sheet"] == "CSV"
    assert lines[0]["row"] == 3


def test_zero_records_with_errors(write_csv, registry):
    path = write_csv(HEADER + "ADM001,,Class 1,,,\n")
    with pytest.raises(NoValidRecordsError, match="No valid rows found. First error: CSV row 2: Missing Student Name"):
        import_roster(path, registry, ListStore(), today=TODAY)


def test_zero_records_without_errors(tmp_path: Path, registry):
    import pandas as pd

    f = tmp_path / "roster.xlsx"
    # only blank/spacer rows below the header
    pd.DataFrame({"Admission No": [None], "Student Name": [None]}).to_excel(f, sheet_name="Class 1", index=False)
    with pytest.raises(NoValidRecordsError, match=NO_DATA_MESSAGE):
        import_roster(f, registry, ListStore(), error_log=ErrorLogBuffer(tmp_path / "logs"), today=TODAY)


def test_decode_error_logged_and_raised(tmp_path: Path, registry):
    f = tmp_path / "roster.csv"
    f.write_text("admno,name\n", encoding="utf-8")
    logs = tmp_path / "logs"
    with pytest.raises(DecodeError):
        import_roster(f, registry, ListStore(), error_log=ErrorLogBuffer(logs))
    lines = _log_lines(logs)
    assert lines[0]["error_type"] == "DECODE_ERROR"
    assert lines[0]["row"] == -1


def test_write_failure_reported_not_raised(write_csv, registry, temp_workdir: Path):
    path = write_csv(HEADER + "ADM001,John Doe,Class 1,,,\n")
    report = import_roster(path, registry, ListStore(fail=RuntimeError("disk full")), today=TODAY)

    assert report.succeeded is False
    assert report.written == 0
    assert "chunk 1/1 failed: disk full" in report.write_error
    lines = _log_lines(temp_workdir / "logs")
    assert lines[-1]["error_type"] == "WRITE_ERROR"


def test_config_chunk_size_and_phone(write_csv, registry):
    rows = "".join(f"A{i},Kid {i},Class 1,,,\n" for i in range(5))
    path = write_csv(HEADER + rows)
    cfg = ImportConfig(chunk_size=2, default_phone="1111111111")
    report = import_roster(path, registry, ListStore(), config=cfg, today=TODAY)
    assert report.total_chunks == 3
    assert report.written == 5
    assert {r.father_phone for r in report.result.records} == {"1111111111"}
