from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""ClassRegistryEntry model.

The class registry is the authoritative set of classes a school has configured.
It is loaded once before an import run starts and is treated as read-only for
the whole run.
"""

__all__ = [
    "ClassRegistryEntry",
]


@dataclass(frozen=True)
class ClassRegistryEntry:
    """One registered class (e.g. ``Class 6``, ``LKG``)."""
    id: str  # Storage identifier (uuid / serial rendered as text)
    name: str  # Display name used for matching
    sort_order: int = 0

    @staticmethod
    def from_mapping(data: dict[str, Any]) -> ClassRegistryEntry:
        """Build an entry from a DB row dict or a config ``classes:`` item."""
        sort_order = data.get("sort_order", data.get("sortOrder", 0))
        return ClassRegistryEntry(
            id=str(data["id"]),
            name=str(data["name"]).strip(),
            sort_order=int(sort_order or 0),
        )
