from __future__ import annotations
import json
import re
from pathlib import Path
from roster_ingest.logging.error_log import ErrorLogBuffer, ErrorRecord

KEYS = {"timestamp", "file", "sheet", "row", "error_type", "message"}


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("roster.csv", "CSV", 3, "MISSING_FIELD", "CSV row 3: Missing Student Name"))
    buf.append(ErrorRecord.create("roster.csv", "CSV", 4, "UNRESOLVED_CLASS", 'CSV row 4: Class "X" not found.'))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("./logs")
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)

    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # buffer cleared after flush
    assert len(buf) == 0
    assert buf.written_path == path


def test_flush_without_records_creates_no_file(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert buf.written_path is None
    assert not (tmp_path / "logs").exists()


def test_second_flush_appends_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("f.csv", "CSV", 1, "MISSING_FIELD", "a"))
    first = buf.flush()
    buf.append(ErrorRecord.create("f.csv", "CSV", 2, "MISSING_FIELD", "b"))
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2


def test_non_ascii_messages_kept_readable(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("f.csv", "कक्षा 1", 1, "UNRESOLVED_CLASS", "नहीं मिला"))
    path = buf.flush()
    assert "कक्षा 1" in path.read_text(encoding="utf-8")
