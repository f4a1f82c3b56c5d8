from __future__ import annotations

import pytest

from roster_ingest.db.batch_upsert import BatchUpsertError, UpsertResult, batch_upsert, build_upsert_sql


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list[list] = []


class PgError(Exception):
    def __init__(self, message: str, pgcode: str) -> None:
        super().__init__(message)
        self.pgcode = pgcode


# We monkeypatch execute_values symbol inside module to avoid needing
# a live PostgreSQL for logic tests

@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import roster_ingest.db.batch_upsert as bu

    def fake_execute_values(cursor, sql, rows, page_size=1000):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)
    monkeypatch.setattr(bu, "execute_values", fake_execute_values)
    return fake_execute_values


def test_build_upsert_sql_updates_non_key_columns():
    sql = build_upsert_sql("students", ["class_id", "admission_number", "full_name"], ["class_id", "admission_number"])
    assert sql == (
        'INSERT INTO students ("class_id","admission_number","full_name") VALUES %s '
        'ON CONFLICT ("class_id","admission_number") DO UPDATE SET "full_name" = EXCLUDED."full_name"'
    )


def test_build_upsert_sql_key_only_does_nothing():
    sql = build_upsert_sql("students", ["class_id", "admission_number"], ["class_id", "admission_number"])
    assert sql.endswith('ON CONFLICT ("class_id","admission_number") DO NOTHING')


def test_batch_upsert_basic():
    cur = DummyCursor()
    res = batch_upsert(
        cur,
        table="students",
        columns=["class_id", "admission_number", "full_name"],
        rows=[["c-1", "A1", "Ann"], ["c-1", "A2", "Bob"]],
        conflict_columns=["class_id", "admission_number"],
    )
    assert isinstance(res, UpsertResult)
    assert res.upserted_rows == 2
    assert len(cur.queries) == 1
    assert cur.rows == [["c-1", "A1", "Ann"], ["c-1", "A2", "Bob"]]


def test_batch_upsert_empty_rows():
    cur = DummyCursor()
    res = batch_upsert(cur, table="students", columns=["a"], rows=[], conflict_columns=["a"])
    assert res.upserted_rows == 0
    assert cur.queries == []


def test_batch_upsert_conflict_column_must_be_written():
    with pytest.raises(BatchUpsertError, match="conflict columns not in column list"):
        batch_upsert(DummyCursor(), table="students", columns=["a"], rows=[[1]], conflict_columns=["b"])


def test_batch_upsert_missing_driver(monkeypatch):
    import roster_ingest.db.batch_upsert as bu
    monkeypatch.setattr(bu, "execute_values", None)
    with pytest.raises(BatchUpsertError, match="psycopg2 not available"):
        batch_upsert(DummyCursor(), table="t", columns=["c"], rows=[[1]], conflict_columns=["c"])


def test_batch_upsert_keeps_pgcode(monkeypatch):
    import roster_ingest.db.batch_upsert as bu

    def failing(cursor, sql, rows, page_size=1000):
        raise PgError("there is no unique or exclusion constraint matching the ON CONFLICT specification", "42P10")
    monkeypatch.setattr(bu, "execute_values", failing)

    with pytest.raises(BatchUpsertError) as e:
        batch_upsert(DummyCursor(), table="t", columns=["c"], rows=[[1]], conflict_columns=["c"])
    assert e.value.pgcode == "42P10"


def test_batch_upsert_with_metrics_callback():
    captured = []
    batch_upsert(
        DummyCursor(),
        table="t",
        columns=["c"],
        rows=[[1], [2], [3]],
        conflict_columns=["c"],
        metrics_callback=captured.append,
    )
    assert len(captured) == 1
    assert captured[0].batch_size == 3
    assert captured[0].elapsed_seconds >= 0
