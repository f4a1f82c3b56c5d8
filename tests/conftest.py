# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pytest

from roster_ingest.logging.init import reset_logging
from roster_ingest.models.class_registry import ClassRegistryEntry
from roster_ingest.models.student_record import CanonicalStudentRecord


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    # handlers bind sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """students_table: students
classes_table: classes
chunk_size: 100
classes:
  - {id: c-lkg, name: LKG, sort_order: 0}
  - {id: c-1, name: Class 1, sort_order: 1}
  - {id: c-2, name: Class 2, sort_order: 2}
  - {id: c-6, name: Class 6, sort_order: 6}
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def registry() -> list[ClassRegistryEntry]:
    return [
        ClassRegistryEntry(id="c-lkg", name="LKG", sort_order=0),
        ClassRegistryEntry(id="c-1", name="Class 1", sort_order=1),
        ClassRegistryEntry(id="c-2", name="Class 2", sort_order=2),
        ClassRegistryEntry(id="c-6", name="Class 6", sort_order=6),
    ]


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(text: str, name: str = "roster.csv") -> Path:
        f = temp_workdir / "data" / name
        f.write_text(text, encoding="utf-8")
        return f
    return _write


def make_record(admission: str = "ADM1", class_id: str = "c-1", **overrides) -> CanonicalStudentRecord:
    data = dict(
        admission_number=admission,
        full_name="Test Student",
        class_id=class_id,
        class_name=overrides.pop("class_name", f"Class {class_id}"),
        gender="Male",
        father_name="N/A",
        father_phone="0000000000",
        student_type="new",
        joining_date="2024-06-01",
    )
    data.update(overrides)
    return CanonicalStudentRecord(**data)


@pytest.fixture()
def record_factory():
    return make_record
