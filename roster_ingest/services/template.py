from __future__ import annotations

import csv
import logging
from pathlib import Path

import pandas as pd

from ..mapping.field_mapper import SynonymTable, default_synonyms

"""Blank roster template export.

Header row = primary name of every visible synonym-table field, in table
order, so a filled-in template always maps cleanly back through the Field
Mapper. One example row shows the expected formats. Every value is quoted.
"""

__all__ = [
    "EXAMPLE_ROW",
    "build_template_csv",
    "write_template",
]

logger = logging.getLogger(__name__)

# canonical field -> example value
EXAMPLE_ROW: dict[str, str] = {
    "admission_number": "ADM001",
    "full_name": "John Doe",
    "class": "Class 1",
    "roll_number": "1",
    "gender": "Male",
    "father_name": "Robert Doe",
    "father_phone": "9876543210",
    "mother_name": "Mary Doe",
    "mother_phone": "9876543211",
    "parent_email": "parent@example.com",
    "student_type": "new",
    "joining_date": "2024-06-01",
    "dob": "2018-05-15",
    "address": "123 Main St",
    "term1_fee": "15000",
    "term2_fee": "15000",
    "term3_fee": "15000",
    "has_books": "yes",
    "books_fee": "2500",
    "has_transport": "yes",
    "transport_fee": "5000",
    "old_dues": "0",
}


def build_template_csv(synonyms: SynonymTable | None = None) -> str:
    synonyms = synonyms or default_synonyms()
    fields = [name for name in synonyms.fields if name not in synonyms.hidden_fields]
    frame = pd.DataFrame(
        [[EXAMPLE_ROW.get(name, "") for name in fields]],
        columns=synonyms.primary_names(),
    )
    return frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def write_template(path: Path, synonyms: SynonymTable | None = None) -> Path:
    """Write the template CSV to ``path`` (parent directories are created)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build_template_csv(synonyms), encoding="utf-8")
    logger.info("template written to %s", path)
    return path
