from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from ..models.student_record import CONFLICT_KEY, STUDENT_COLUMNS, CanonicalStudentRecord
from .batch_upsert import BatchMetrics, BatchUpsertError, batch_upsert

"""Student storage interface.

The pipeline only needs one write operation: an idempotent upsert of a list
of records keyed on (class_id, admission_number). StudentStore is that
interface; PostgresStudentStore implements it on a psycopg2 cursor and commits
every call on its own, so a later failure never undoes an earlier chunk.
"""

__all__ = [
    "StudentStore",
    "PostgresStudentStore",
]

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class StudentStore(Protocol):
    def upsert(
        self,
        records: Sequence[CanonicalStudentRecord],
        conflict_key: tuple[str, ...] = CONFLICT_KEY,
    ) -> int:
        """Persist ``records``; return the number of records written."""
        ...


class PostgresStudentStore:
    """StudentStore on a psycopg2 cursor.

    Expects an autocommit connection (as the CLI opens it); each chunk runs in
    its own explicit BEGIN/COMMIT and a failed chunk is rolled back.
    """

    def __init__(
        self,
        cursor: Any,
        table: str = "students",
        page_size: int = 1000,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"invalid students table name: {table!r}")
        self.cursor = cursor
        self.table = table
        self.page_size = page_size
        self.metrics_callback = metrics_callback

    def upsert(
        self,
        records: Sequence[CanonicalStudentRecord],
        conflict_key: tuple[str, ...] = CONFLICT_KEY,
    ) -> int:
        columns = list(STUDENT_COLUMNS)
        rows = []
        for rec in records:
            data = rec.to_row()
            rows.append([data[c] for c in columns])
        self.cursor.execute("BEGIN")
        try:
            result = batch_upsert(
                self.cursor,
                table=self.table,
                columns=columns,
                rows=rows,
                conflict_columns=conflict_key,
                page_size=self.page_size,
                metrics_callback=self.metrics_callback,
            )
        except BatchUpsertError:
            try:
                self.cursor.execute("ROLLBACK")
            except Exception:  # pragma: no cover - connection already gone
                logger.debug("rollback after failed upsert also failed", exc_info=True)
            raise
        self.cursor.execute("COMMIT")
        logger.debug("table=%s upserted_rows=%d", self.table, result.upserted_rows)
        return result.upserted_rows
