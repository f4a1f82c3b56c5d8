from __future__ import annotations

import json
import pathlib

import jsonschema
import pytest

from roster_ingest.logging.error_log import ErrorLogBuffer
from roster_ingest.models.error_record import ErrorRecord
from roster_ingest.services.pipeline import import_roster

"""Error log JSON Lines schema contract test."""

SCHEMA_PATH = pathlib.Path(__file__).with_name("error_log_schema.json")


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_error_log_schema_valid_example(schema):
    record = {
        "timestamp": "2025-09-26T10:12:33.123456Z",
        "file": "roster.xlsx",
        "sheet": "Class 6",
        "row": 14,
        "error_type": "UNRESOLVED_CLASS",
        "message": 'Class 6 row 14: Class "Class 99" not found. Available: Class 1, Class 6',
    }
    jsonschema.validate(record, schema)


def test_error_log_schema_rejects_extra_key(schema):
    record = json.loads(ErrorRecord.create("f.csv", "CSV", 2, "MISSING_FIELD", "x").to_json_line())
    record["extra"] = "not allowed"
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(record, schema)


def test_error_record_lines_conform(schema):
    for error_type in ("MISSING_FIELD", "UNRESOLVED_CLASS", "DECODE_ERROR", "WRITE_ERROR", "SCHEMA_OUTDATED"):
        rec = ErrorRecord.create("f.csv", "<FILE_LEVEL>", -1, error_type, "msg")
        jsonschema.validate(json.loads(rec.to_json_line()), schema)


def test_real_run_log_conforms(schema, write_csv, registry, tmp_path: pathlib.Path):
    path = write_csv(
        "Admission Number,Student Name,Class\n"
        "ADM001,,Class 1\n"
        "ADM002,Ann,Class 99\n"
        "ADM003,Bob,Class 1\n"
    )
    buf = ErrorLogBuffer(tmp_path / "logs")
    import_roster(path, registry, None, error_log=buf)

    lines = buf.written_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    for raw in lines:
        jsonschema.validate(json.loads(raw), schema)
