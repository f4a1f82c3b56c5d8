from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime

from .row_error import RowError
from .student_record import CanonicalStudentRecord

"""Result models for a roster import run.

ImportResult is the pure output of parsing (file + registry -> records/errors).
WriteOutcome and ImportReport add what happened when the records were handed
to the storage layer, including batch timing statistics.
"""

__all__ = [
    "ImportResult",
    "WriteOutcome",
    "ImportReport",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class ImportResult:
    """Deduplicated records plus every row that was skipped."""
    records: list[CanonicalStudentRecord]
    errors: list[RowError]
    auto_generated_count: int  # admission numbers synthesized among surviving records
    classes_touched: frozenset[str] = field(default_factory=frozenset)  # registry names

    @property
    def skipped_rows(self) -> int:
        return len(self.errors)


@dataclass(frozen=True)
class WriteOutcome:
    """Chunks written by the Batch Writer."""
    written: int  # records confirmed committed
    chunks: int  # chunks committed
    total_chunks: int


@dataclass(frozen=True)
class ImportReport:
    """Everything the caller needs to tell the user how an import went."""
    file_name: str
    result: ImportResult
    written: int  # records committed (0 in dry-run)
    total_chunks: int
    start_time: datetime
    end_time: datetime
    dry_run: bool = False
    write_error: str | None = None  # WriteError message when a chunk failed
    schema_outdated: bool = False
    avg_chunk_seconds: float = 0.0
    p95_chunk_seconds: float = 0.0

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.write_error is None


class BatchStatsAccumulator:
    """Helper class to accumulate chunk timing statistics for ImportReport.

    Collects individual chunk timings and calculates summary statistics.
    """

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        """Add a chunk timing measurement."""
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate chunk statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th out of 20 quantiles, 0-indexed)

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
