from __future__ import annotations

from dataclasses import dataclass

"""RowError model.

Row-level problems (missing student name, class label that does not resolve)
are values, not exceptions: the validator returns a RowError and the pipeline
appends it to an ordered sequence and moves on to the next row.
"""

__all__ = [
    "RowError",
    "MISSING_FIELD",
    "UNRESOLVED_CLASS",
]

MISSING_FIELD = "MISSING_FIELD"
UNRESOLVED_CLASS = "UNRESOLVED_CLASS"


@dataclass(frozen=True)
class RowError:
    """A skipped row and the reason it was skipped."""
    sheet_name: str
    row_number: int  # 1-based. -1 when the problem is not tied to a row
    message: str  # Human readable, already prefixed with "<sheet> row <n>:"
    error_type: str = MISSING_FIELD  # UPPER_SNAKE classification

    def __str__(self) -> str:
        return self.message
