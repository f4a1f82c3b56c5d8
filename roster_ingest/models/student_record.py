from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

"""CanonicalStudentRecord model.

This is the fully-typed output of the pipeline: one student, independent of the
formatting of the file it came from. Field names match the ``students`` table
columns so a record can be upserted without further translation.
"""

__all__ = [
    "CanonicalStudentRecord",
    "STUDENT_COLUMNS",
    "CONFLICT_KEY",
]

StudentType = Literal["old", "new"]

# Natural key used by the upsert (unique constraint on the students table)
CONFLICT_KEY: tuple[str, str] = ("class_id", "admission_number")


@dataclass(frozen=True)
class CanonicalStudentRecord:
    """Normalized student row ready for persistence.

    Identity is ``(class_id, admission_number)`` compared case-insensitively,
    see :attr:`identity_key`.
    """
    admission_number: str
    full_name: str
    class_id: str
    class_name: str  # registry name, used for reporting only (not persisted)
    gender: str
    father_name: str
    father_phone: str
    student_type: StudentType
    joining_date: str  # ISO date
    roll_number: str | None = None
    mother_name: str | None = None
    mother_phone: str | None = None
    dob: str | None = None  # ISO date
    address: str | None = None
    parent_email: str | None = None
    term1_fee: float = 0.0
    term2_fee: float = 0.0
    term3_fee: float = 0.0
    has_books: bool = False
    books_fee: float = 0.0
    has_transport: bool = False
    transport_fee: float = 0.0
    old_dues: float = 0.0
    is_active: bool = True
    status: str = "active"
    was_generated: bool = False  # admission number synthesized (not persisted)

    @property
    def identity_key(self) -> str:
        return f"{self.class_id.lower()}::{self.admission_number.lower()}"

    def to_row(self) -> dict[str, Any]:
        """Column -> value dict for the storage layer (reporting-only fields dropped)."""
        data = asdict(self)
        data.pop("class_name")
        data.pop("was_generated")
        return data


STUDENT_COLUMNS: tuple[str, ...] = tuple(
    name
    for name in CanonicalStudentRecord.__dataclass_fields__
    if name not in ("class_name", "was_generated")
)
