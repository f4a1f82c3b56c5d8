from __future__ import annotations

import logging
from datetime import date

from ..admission.synthesizer import synthesize_admission_number
from ..classes.resolver import ClassResolver
from ..models.raw_row import RawRow
from ..models.row_error import MISSING_FIELD, UNRESOLVED_CLASS, RowError
from ..models.student_record import CanonicalStudentRecord
from ..normalize.scalars import (
    normalize_date,
    normalize_gender,
    normalize_student_type,
    parse_amount,
    parse_boolean_like,
)

"""Row validator.

Turns one RawRow into exactly one of:
- None: blank/spacer row (no admission number and no name), skipped silently
- RowError: the row cannot become a record (no name, class does not resolve)
- CanonicalStudentRecord: everything else, optional fields filled with defaults

Only the student name and the class are required; every other field falls
back to a default.
"""

__all__ = [
    "RowValidator",
    "DEFAULT_PHONE",
    "DEFAULT_FATHER_NAME",
]

logger = logging.getLogger(__name__)

DEFAULT_PHONE = "0000000000"
DEFAULT_FATHER_NAME = "N/A"
DEFAULT_GENDER = "Male"


class RowValidator:
    def __init__(
        self,
        resolver: ClassResolver,
        *,
        prefer_sheet_name: bool = False,
        default_phone: str = DEFAULT_PHONE,
        today: date | None = None,
    ) -> None:
        self.resolver = resolver
        self.prefer_sheet_name = prefer_sheet_name
        self.default_phone = default_phone
        self.today = today or date.today()

    def validate(self, row: RawRow) -> CanonicalStudentRecord | RowError | None:
        where = f"{row.sheet_name} row {row.row_number}"
        admission_raw = row.get("admission_number")
        full_name = row.get("full_name")

        if not admission_raw and not full_name:
            return None

        if not full_name:
            return RowError(
                sheet_name=row.sheet_name,
                row_number=row.row_number,
                message=f"{where}: Missing Student Name",
                error_type=MISSING_FIELD,
            )

        class_label = row.get("class")
        entry = self.resolver.resolve(class_label, row.sheet_name, self.prefer_sheet_name)
        if entry is None:
            return RowError(
                sheet_name=row.sheet_name,
                row_number=row.row_number,
                message=(
                    f'{where}: Class "{class_label or row.sheet_name}" not found. '
                    f"Available: {self.resolver.describe_available()}"
                ),
                error_type=UNRESOLVED_CLASS,
            )

        dob = normalize_date(row.get("dob"))
        father_phone = row.get("father_phone") or self.default_phone
        admission = synthesize_admission_number(
            raw_admission=admission_raw,
            full_name=full_name,
            father_phone=father_phone,
            dob=dob,
            class_label=entry.name,
            sheet_name=row.sheet_name,
            row_number=row.row_number,
        )
        if admission.was_generated:
            logger.debug("%s: admission number synthesized as %s", where, admission.value)

        # legacy exports carry one "Total Fees" column instead of term fees
        term1_raw = row.get("term1_fee") or row.get("total_fees")

        return CanonicalStudentRecord(
            admission_number=admission.value,
            full_name=full_name,
            class_id=entry.id,
            class_name=entry.name,
            roll_number=row.get("roll_number") or None,
            gender=normalize_gender(row.get("gender"), DEFAULT_GENDER),
            father_name=row.get("father_name") or DEFAULT_FATHER_NAME,
            father_phone=father_phone,
            mother_name=row.get("mother_name") or None,
            mother_phone=row.get("mother_phone") or None,
            dob=dob,
            address=row.get("address") or None,
            parent_email=row.get("parent_email") or None,
            student_type=normalize_student_type(row.get("student_type")),  # type: ignore[arg-type]
            joining_date=normalize_date(row.get("joining_date")) or self.today.isoformat(),
            term1_fee=parse_amount(term1_raw),
            term2_fee=parse_amount(row.get("term2_fee")),
            term3_fee=parse_amount(row.get("term3_fee")),
            has_books=parse_boolean_like(row.get("has_books")),
            books_fee=parse_amount(row.get("books_fee")),
            has_transport=parse_boolean_like(row.get("has_transport")),
            transport_fee=parse_amount(row.get("transport_fee")),
            old_dues=parse_amount(row.get("old_dues")),
            is_active=True,
            status="active",
            was_generated=admission.was_generated,
        )
