from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from ..config.loader import ConfigError
from ..models.raw_row import RawRow
from ..normalize.scalars import cell_to_text
from ..tabular.header import HeaderLocation, normalize_header

"""Field mapper.

Collapses a sheet's free-form headers onto canonical field names through the
synonym table, then turns each data row into a RawRow keyed by canonical field
only. Columns whose header is not in the table are dropped, so extra columns in
a school's export are harmless.

The synonym table is data (synonyms.yml next to this module). A different
table can be supplied through the ``synonyms_file`` config key.
"""

__all__ = [
    "SynonymTable",
    "DEFAULT_SYNONYMS_PATH",
    "load_synonyms",
    "default_synonyms",
    "map_rows",
]

DEFAULT_SYNONYMS_PATH = Path(__file__).with_name("synonyms.yml")

_SYNONYMS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["fields"],
    "additionalProperties": False,
    "properties": {
        "fields": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {
                "type": "array",
                "minItems": 1,
                "items": {"type": "string", "minLength": 1},
            },
        },
        "hidden_fields": {"type": "array", "items": {"type": "string"}},
    },
}

# fields the pipeline cannot work without
REQUIRED_FIELDS = ("admission_number", "full_name", "class")


@dataclass(frozen=True)
class SynonymTable:
    """Normalized header token -> canonical field, with alias priority."""
    fields: dict[str, list[str]]  # canonical field -> aliases as written (primary first)
    hidden_fields: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        lookup: dict[str, tuple[str, int]] = {}
        for canonical, aliases in self.fields.items():
            for rank, alias in enumerate(aliases):
                token = normalize_header(alias)
                if not token:
                    raise ConfigError(f"synonym '{alias}' for field '{canonical}' normalizes to nothing")
                owner = lookup.get(token)
                if owner is not None and owner[0] != canonical:
                    raise ConfigError(
                        f"header token '{token}' maps to both '{owner[0]}' and '{canonical}'"
                    )
                lookup.setdefault(token, (canonical, rank))
        object.__setattr__(self, "_lookup", lookup)

    def lookup(self, token: str) -> tuple[str, int] | None:
        """Return (canonical field, alias rank) for a normalized token."""
        return self._lookup.get(token)  # type: ignore[attr-defined]

    def canonical(self, header: Any) -> str | None:
        hit = self.lookup(normalize_header(header))
        return hit[0] if hit else None

    def primary_names(self) -> list[str]:
        """First-listed alias of every visible field, in table order."""
        return [aliases[0] for name, aliases in self.fields.items() if name not in self.hidden_fields]


def load_synonyms(path: Path | None = None) -> SynonymTable:
    path = path or DEFAULT_SYNONYMS_PATH
    if not path.exists():
        raise ConfigError(f"synonyms file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in synonyms file: {e}") from e
    try:
        jsonschema.validate(data, _SYNONYMS_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"synonyms validation failed: {e.message}") from e

    missing = [f for f in REQUIRED_FIELDS if f not in data["fields"]]
    if missing:
        raise ConfigError(f"synonyms file lacks required fields: {missing}")
    return SynonymTable(
        fields={k: list(v) for k, v in data["fields"].items()},
        hidden_fields=frozenset(data.get("hidden_fields", [])),
    )


_default: SynonymTable | None = None


def default_synonyms() -> SynonymTable:
    global _default
    if _default is None:
        _default = load_synonyms()
    return _default


def _column_plan(tokens: list[str], synonyms: SynonymTable) -> dict[str, list[int]]:
    """canonical field -> column indexes, best alias first."""
    ranked: dict[str, list[tuple[int, int]]] = {}
    for col, token in enumerate(tokens):
        if not token:
            continue
        hit = synonyms.lookup(token)
        if hit is None:
            continue
        canonical, rank = hit
        ranked.setdefault(canonical, []).append((rank, col))
    return {name: [col for _, col in sorted(cols)] for name, cols in ranked.items()}


def map_rows(
    rows: list[list[Any]],
    header: HeaderLocation,
    synonyms: SynonymTable,
    sheet_name: str,
) -> list[RawRow]:
    """Build RawRows for every non-empty row below the header.

    Row numbers are 1-based matrix positions, i.e. the line a user sees in the
    spreadsheet when the sheet starts at row 1.
    """
    plan = _column_plan(header.tokens, synonyms)
    out: list[RawRow] = []
    for i in range(header.index + 1, len(rows)):
        cells = rows[i]
        if not cells or all(cell_to_text(c) == "" for c in cells):
            continue
        values: dict[str, str] = {}
        for canonical, cols in plan.items():
            values[canonical] = _first_non_empty(cells, cols)
        out.append(RawRow(sheet_name=sheet_name, row_number=i + 1, values=values))
    return out


def _first_non_empty(cells: list[Any], cols: Iterable[int]) -> str:
    for col in cols:
        if col < len(cells):
            text = cell_to_text(cells[col])
            if text:
                return text
    return ""
