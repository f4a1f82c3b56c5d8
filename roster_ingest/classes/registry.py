from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from ..errors import RosterImportError
from ..models.class_registry import ClassRegistryEntry

"""Class registry read interface.

The registry is fetched once, before any sheet is processed, and passed to the
ClassResolver explicitly. Two sources:
- the ``classes`` table through a DB-API cursor (live mode)
- a ``classes:`` list in the import config (offline / dry-run mode)
"""

__all__ = [
    "RegistryLoadError",
    "load_class_registry",
    "registry_from_config",
]

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class RegistryLoadError(RosterImportError):
    """Raised when the class registry cannot be read."""


def load_class_registry(cursor: Any, table: str = "classes") -> list[ClassRegistryEntry]:
    """Read ``id, name, sort_order`` from the classes table."""
    if not _IDENTIFIER.match(table):
        raise RegistryLoadError(f"invalid classes table name: {table!r}")
    try:
        cursor.execute(f"SELECT id, name, sort_order FROM {table} ORDER BY sort_order, name")
        rows = cursor.fetchall()
    except Exception as e:
        raise RegistryLoadError(f"Could not load classes from database: {e}") from e
    entries = [
        ClassRegistryEntry.from_mapping({"id": r[0], "name": r[1], "sort_order": r[2]})
        for r in rows
    ]
    logger.debug("class registry loaded from table=%s entries=%d", table, len(entries))
    return entries


def registry_from_config(items: Iterable[dict[str, Any]] | None) -> list[ClassRegistryEntry]:
    """Build the registry from the config ``classes:`` list.

    ``id`` defaults to the class name when omitted, ``sort_order`` to the list
    position.
    """
    entries: list[ClassRegistryEntry] = []
    for pos, item in enumerate(items or []):
        data = dict(item)
        data.setdefault("id", data.get("name"))
        data.setdefault("sort_order", pos)
        entries.append(ClassRegistryEntry.from_mapping(data))
    return entries
