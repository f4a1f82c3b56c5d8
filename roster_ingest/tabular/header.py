from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

"""Header locator.

School exports often carry a title line ("ABC Public School - Class VI 2024")
or blank spacer rows above the real header. The locator scans a bounded number
of leading rows for the first one that looks like a header and falls back to
row 0.
"""

__all__ = [
    "HeaderLocation",
    "normalize_header",
    "locate_header",
    "DEFAULT_SCAN_ROWS",
]

DEFAULT_SCAN_ROWS = 5

# normalized substrings that identify a header row
HEADER_MARKERS = ("admission", "studentname")

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(value: Any) -> str:
    """Lowercase and drop everything outside ``[a-z0-9]``.

    >>> normalize_header(" Admission No. ")
    'admissionno'
    """
    if value is None:
        return ""
    return _NON_ALNUM.sub("", str(value).strip().lower())


@dataclass(frozen=True)
class HeaderLocation:
    index: int  # row index of the header inside the matrix
    tokens: list[str]  # normalized header tokens, aligned by column


def locate_header(rows: list[list[Any]], max_scan: int = DEFAULT_SCAN_ROWS) -> HeaderLocation:
    index = 0
    for i, row in enumerate(rows[:max_scan]):
        tokens = [normalize_header(c) for c in row]
        if any(marker in t for t in tokens for marker in HEADER_MARKERS):
            index = i
            break
    header_row = rows[index] if rows else []
    return HeaderLocation(index=index, tokens=[normalize_header(c) for c in header_row])
