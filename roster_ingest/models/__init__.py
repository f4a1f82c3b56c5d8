"""Domain models for the roster ingestion pipeline.

This package contains all domain model classes used throughout the application:
the class registry, raw and canonical rows, row errors and run results.
"""

from .class_registry import ClassRegistryEntry
from .error_record import ErrorRecord
from .import_result import BatchStatsAccumulator, ImportReport, ImportResult, WriteOutcome
from .raw_row import RawRow
from .row_error import MISSING_FIELD, UNRESOLVED_CLASS, RowError
from .student_record import CONFLICT_KEY, STUDENT_COLUMNS, CanonicalStudentRecord

__all__ = [
    # Input side
    "ClassRegistryEntry",
    "RawRow",
    # Output side
    "CanonicalStudentRecord",
    "CONFLICT_KEY",
    "STUDENT_COLUMNS",
    "ImportResult",
    "WriteOutcome",
    "ImportReport",
    "BatchStatsAccumulator",
    # Errors
    "RowError",
    "ErrorRecord",
    "MISSING_FIELD",
    "UNRESOLVED_CLASS",
]
