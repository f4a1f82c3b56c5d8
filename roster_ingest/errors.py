from __future__ import annotations

"""Exception hierarchy for the roster import.

Row-level problems are not exceptions (see models.row_error.RowError). Only the
conditions that stop a run, or stop the remaining writes of a run, raise.
"""

__all__ = [
    "RosterImportError",
    "DecodeError",
    "NoValidRecordsError",
    "WriteError",
]


class RosterImportError(Exception):
    """Base class for errors that abort an import run."""


class DecodeError(RosterImportError):
    """Raised when the input file cannot be opened or parsed at all."""


class NoValidRecordsError(RosterImportError):
    """Raised when validation leaves zero records to save."""


class WriteError(RosterImportError):
    """Raised when a chunk upsert fails.

    Chunks committed before the failing one stay committed; ``written`` tells
    the caller how many records that is. The chunks after the failing one are
    never attempted.
    """

    def __init__(
        self,
        message: str,
        *,
        written: int = 0,
        failed_chunk: int = 0,
        total_chunks: int = 0,
        schema_outdated: bool = False,
    ) -> None:
        super().__init__(message)
        self.written = written
        self.failed_chunk = failed_chunk  # 0-based index of the chunk that failed
        self.total_chunks = total_chunks
        self.schema_outdated = schema_outdated
