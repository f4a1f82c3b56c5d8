from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from ..db.batch_upsert import SCHEMA_OUTDATED_PGCODE
from ..db.student_store import StudentStore
from ..errors import WriteError
from ..models.import_result import BatchStatsAccumulator, WriteOutcome
from ..models.student_record import CONFLICT_KEY, CanonicalStudentRecord
from .progress import ProgressTracker

"""Batch writer.

Hands deduplicated records to the store in fixed-size chunks. Each chunk is an
independent idempotent upsert. When a chunk fails:
- chunks already written stay written (no rollback across chunks)
- the remaining chunks are not attempted
- a WriteError tells the caller how many records made it

There is no retry. Re-running the whole import is idempotent (upsert keyed on
(class_id, admission_number)).
"""

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "SCHEMA_OUTDATED_MESSAGE",
    "chunked",
    "write_in_chunks",
]

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100

SCHEMA_OUTDATED_MESSAGE = (
    "Database schema is outdated: the students table has no unique constraint on "
    "(class_id, admission_number). Apply the latest migration before bulk upload."
)


def chunked(records: Sequence[CanonicalStudentRecord], size: int) -> list[Sequence[CanonicalStudentRecord]]:
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [records[i:i + size] for i in range(0, len(records), size)]


def write_in_chunks(
    records: Sequence[CanonicalStudentRecord],
    store: StudentStore,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    stats: BatchStatsAccumulator | None = None,
) -> WriteOutcome:
    chunks = chunked(records, chunk_size)
    written = 0
    with ProgressTracker(len(chunks)) as progress:
        for index, chunk in enumerate(chunks):
            progress.start_chunk(len(chunk))
            started = time.perf_counter()
            try:
                store.upsert(chunk, conflict_key=CONFLICT_KEY)
            except Exception as e:
                progress.finish_chunk(success=False)
                schema_outdated = getattr(e, "pgcode", None) == SCHEMA_OUTDATED_PGCODE
                message = (
                    SCHEMA_OUTDATED_MESSAGE
                    if schema_outdated
                    else f"chunk {index + 1}/{len(chunks)} failed: {e}"
                )
                logger.error(
                    "write stopped at chunk %d/%d written=%d: %s",
                    index + 1,
                    len(chunks),
                    written,
                    e,
                )
                raise WriteError(
                    message,
                    written=written,
                    failed_chunk=index,
                    total_chunks=len(chunks),
                    schema_outdated=schema_outdated,
                ) from e
            finally:
                if stats is not None:
                    stats.add_batch_time(time.perf_counter() - started)
            written += len(chunk)
            progress.finish_chunk(success=True)
            progress.set_postfix(written=written)
            logger.debug("chunk %d/%d committed size=%d", index + 1, len(chunks), len(chunk))

    return WriteOutcome(written=written, chunks=len(chunks), total_chunks=len(chunks))
