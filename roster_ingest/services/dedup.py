from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models.student_record import CanonicalStudentRecord

"""Deduplicator.

Collapses records that share ``(class_id, admission_number)``, compared
case-insensitively. Last write wins: a later row (later in the sheet, or in a
later sheet) replaces an earlier one. The same admission number in two
different classes is two different students.
"""

__all__ = [
    "DedupResult",
    "deduplicate",
]


@dataclass(frozen=True)
class DedupResult:
    records: list[CanonicalStudentRecord]
    classes_touched: frozenset[str]
    duplicates_dropped: int = 0


def deduplicate(records: Iterable[CanonicalStudentRecord]) -> DedupResult:
    unique: dict[str, CanonicalStudentRecord] = {}
    seen = 0
    for rec in records:
        seen += 1
        unique[rec.identity_key] = rec
    kept = list(unique.values())
    return DedupResult(
        records=kept,
        classes_touched=frozenset(r.class_name for r in kept),
        duplicates_dropped=seen - len(kept),
    )
