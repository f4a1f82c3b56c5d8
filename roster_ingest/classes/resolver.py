from __future__ import annotations

import re
from collections.abc import Sequence

from ..models.class_registry import ClassRegistryEntry

"""Class resolver.

Maps a free-text class label ("VI", "Class 6", "class-6", "6", "U.K.G") to a
registry entry. Each candidate label is tried with three strategies, strictest
first:

1. exact case-insensitive name match
2. match after stripping non-alphanumerics from both sides
3. class-token match (see ``class_token``)

Candidates are the row's class cell and the sheet name. Multi-sheet workbooks
usually name each sheet after a class, so the sheet name goes first for them;
CSV files carry the class in a column, so the cell goes first.
Spreadsheet-default sheet names ("Sheet1", "Feuil2", ...) never name a class
and are not candidates.
"""

__all__ = [
    "ClassResolver",
    "class_token",
    "is_default_sheet_name",
    "normalize_class_name",
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DIGITS = re.compile(r"\d+")
_DEFAULT_SHEET_NAME = re.compile(r"^(?:sheet|feuil|tabelle|hoja|foglio|planilha)\d*$")

NAMED_CLASSES = frozenset({"nursery", "lkg", "ukg"})

ROMAN_NUMERALS = {
    "i": "1",
    "ii": "2",
    "iii": "3",
    "iv": "4",
    "v": "5",
    "vi": "6",
    "vii": "7",
    "viii": "8",
    "ix": "9",
    "x": "10",
}


def normalize_class_name(value: str | None) -> str:
    return _NON_ALNUM.sub("", str(value or "").lower())


def is_default_sheet_name(name: str | None) -> bool:
    return bool(_DEFAULT_SHEET_NAME.match(normalize_class_name(name)))


def class_token(label: str | None) -> str:
    """Short comparable form of a class label.

    >>> class_token("Class VI"), class_token("class-6"), class_token("UKG")
    ('6', '6', 'ukg')
    """
    normalized = normalize_class_name(label)
    if normalized.startswith("class"):
        normalized = normalized[len("class"):]
    if not normalized:
        return ""
    if normalized in NAMED_CLASSES:
        return normalized
    if normalized in ROMAN_NUMERALS:
        return ROMAN_NUMERALS[normalized]
    m = _DIGITS.search(normalized)
    if m:
        return str(int(m.group(0)))
    return normalized


class ClassResolver:
    """Resolves class labels against a registry loaded once per run."""

    def __init__(self, registry: Sequence[ClassRegistryEntry]) -> None:
        self.registry = tuple(registry)
        # first registry entry wins on collisions
        self._by_lower: dict[str, ClassRegistryEntry] = {}
        self._by_normalized: dict[str, ClassRegistryEntry] = {}
        self._by_token: dict[str, ClassRegistryEntry] = {}
        for entry in self.registry:
            self._by_lower.setdefault(entry.name.strip().lower(), entry)
            self._by_normalized.setdefault(normalize_class_name(entry.name), entry)
            token = class_token(entry.name)
            if token:
                self._by_token.setdefault(token, entry)

    def _match(self, label: str) -> ClassRegistryEntry | None:
        entry = self._by_lower.get(label.lower())
        if entry is None:
            normalized = normalize_class_name(label)
            if normalized:
                entry = self._by_normalized.get(normalized)
        if entry is None:
            token = class_token(label)
            if token:
                entry = self._by_token.get(token)
        return entry

    def resolve(
        self,
        cell_value: str | None,
        sheet_name: str | None = None,
        prefer_sheet_name: bool = False,
    ) -> ClassRegistryEntry | None:
        if is_default_sheet_name(sheet_name):
            sheet_name = None
        candidates = [sheet_name, cell_value] if prefer_sheet_name else [cell_value, sheet_name]
        for candidate in candidates:
            label = str(candidate or "").strip()
            if not label:
                continue
            entry = self._match(label)
            if entry is not None:
                return entry
        return None

    def available_names(self) -> list[str]:
        ordered = sorted(self.registry, key=lambda e: (e.sort_order, e.name))
        return [e.name for e in ordered]

    def describe_available(self) -> str:
        names = self.available_names()
        return ", ".join(names) if names else "(no classes registered)"
