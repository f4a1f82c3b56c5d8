from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

"""RawRow model.

A RawRow is one spreadsheet data row after the Field Mapper collapsed its
headers onto canonical field names. Values are trimmed strings; unmapped
columns are already gone. Provenance (sheet + 1-based row number) is kept for
error reporting and admission-number synthesis.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """Canonical field -> trimmed cell text, plus provenance."""
    sheet_name: str
    row_number: int  # 1-based position in the sheet matrix
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only view so nothing downstream can mutate the row
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, field_name: str, default: str = "") -> str:
        return self.values.get(field_name, default) or default

    def is_blank(self) -> bool:
        return not any(self.values.values())
