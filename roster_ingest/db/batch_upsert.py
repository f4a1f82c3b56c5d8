from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""DB batch upsert.

Batched ``INSERT ... ON CONFLICT (...) DO UPDATE`` through
psycopg2.extras.execute_values. Re-submitting an identical row updates it in
place, so re-importing a roster never creates duplicates.

Requires a unique constraint on the conflict columns. When it is missing,
PostgreSQL rejects the statement with SQLSTATE 42P10; the error code is kept on
BatchUpsertError so callers can tell "schema out of date" apart from other
failures.
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import execute_values
except Exception:  # pragma: no cover
    execute_values = None  # type: ignore

__all__ = [
    "BatchUpsertError",
    "BatchMetrics",
    "UpsertResult",
    "batch_upsert",
    "build_upsert_sql",
    "SCHEMA_OUTDATED_PGCODE",
]

# invalid_column_reference: no unique or exclusion constraint matching ON CONFLICT
SCHEMA_OUTDATED_PGCODE = "42P10"


class BatchUpsertError(Exception):
    def __init__(self, message: str, pgcode: str | None = None) -> None:
        super().__init__(message)
        self.pgcode = pgcode


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics data for a single batch upsert operation."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # Start timestamp (time.time())
    end_time: float  # End timestamp (time.time())


@dataclass(frozen=True)
class UpsertResult:
    upserted_rows: int


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def build_upsert_sql(table: str, columns: Sequence[str], conflict_columns: Sequence[str]) -> str:
    """Build the execute_values statement (``VALUES %s`` placeholder)."""
    cols_sql = ",".join(_quote(c) for c in columns)
    conflict_sql = ",".join(_quote(c) for c in conflict_columns)
    updates = [c for c in columns if c not in conflict_columns]
    base_sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s ON CONFLICT ({conflict_sql})"
    if updates:
        set_sql = ", ".join(f"{_quote(c)} = EXCLUDED.{_quote(c)}" for c in updates)
        return f"{base_sql} DO UPDATE SET {set_sql}"
    return f"{base_sql} DO NOTHING"


def batch_upsert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_columns: Sequence[str],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> UpsertResult:
    """Perform a batched upsert using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated identifier)
    columns: columns to write, in row value order
    rows: row value sequences
    conflict_columns: natural key columns (must carry a unique constraint)
    page_size: execute_values page size
    metrics_callback: receives BatchMetrics after the statement ran.
        Not invoked when ``rows`` is empty.
    """
    if execute_values is None:
        raise BatchUpsertError("psycopg2 not available")

    rows_list = list(rows)
    if not rows_list:
        return UpsertResult(upserted_rows=0)

    missing = [c for c in conflict_columns if c not in columns]
    if missing:
        raise BatchUpsertError(f"conflict columns not in column list: {missing}")

    sql = build_upsert_sql(table, columns, conflict_columns)

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchUpsertError(str(e).strip(), pgcode=getattr(e, "pgcode", None)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return UpsertResult(upserted_rows=len(rows_list))
