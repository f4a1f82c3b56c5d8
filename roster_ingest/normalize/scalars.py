from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

"""Scalar normalizers.

Pure functions turning one spreadsheet cell into one typed value. None of them
raise on bad data: a date that cannot be read becomes None, an amount that
cannot be read becomes 0.0, a flag that is not a recognized "yes" is False.

Excel serial dates use the 1899-12-30 epoch. That is the epoch Excel itself
effectively uses for every serial after 60 (1900-02-28), because it counts the
non-existent 1900-02-29; serials 1..59 come out one day early, which does not
matter for dates of birth or joining.
"""

__all__ = [
    "EXCEL_EPOCH",
    "AFFIRMATIVE_TOKENS",
    "cell_to_text",
    "normalize_date",
    "parse_boolean_like",
    "parse_amount",
    "normalize_student_type",
    "normalize_gender",
]

EXCEL_EPOCH = date(1899, 12, 30)

# silent-false policy: anything outside this set is False
AFFIRMATIVE_TOKENS = frozenset({"yes", "y", "true", "1", "auto", "bus", "van", "schoolbus", "transport"})

# two-digit years below the pivot are 20xx, the rest 19xx
YEAR_PIVOT = 50

_SERIAL = re.compile(r"^\d{5,}$")
_DMY_FULL = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})$")
_DMY_SHORT = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2})$")
_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_CURRENCY = re.compile(r"^(?:rs\.?|inr|₹)", re.IGNORECASE)
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _is_nat(value: Any) -> bool:
    try:
        return value is pd.NaT or bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_to_text(value: Any) -> str:
    """Render a raw cell as trimmed text.

    Integral floats lose their ``.0`` (spreadsheets store phone numbers and
    admission numbers as floats), dates become ISO strings.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if _is_nat(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, float):
        if math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


def _iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(value: Any) -> str | None:
    """Normalize a date cell to ``YYYY-MM-DD``; None when absent or unreadable.

    >>> normalize_date("15/05/2018")
    '2018-05-15'
    >>> normalize_date("15.05.18")
    '2018-05-15'
    >>> normalize_date("43586")
    '2019-05-01'
    """
    if value is None or _is_nat(value):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = cell_to_text(value)
    if not text:
        return None

    if _SERIAL.match(text):
        try:
            return (EXCEL_EPOCH + timedelta(days=int(text))).isoformat()
        except OverflowError:
            return None

    m = _DMY_FULL.match(text)
    if m:
        d, mo, y = m.groups()
        return _iso(int(y), int(mo), int(d))

    m = _DMY_SHORT.match(text)
    if m:
        d, mo, y = m.groups()
        yy = int(y)
        year = 1900 + yy if yy >= YEAR_PIVOT else 2000 + yy
        return _iso(year, int(mo), int(d))

    m = _ISO.match(text)
    if m:
        y, mo, d = m.groups()
        return _iso(int(y), int(mo), int(d))

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if _is_nat(parsed):
        return None
    return parsed.date().isoformat()


def parse_boolean_like(value: Any) -> bool:
    return cell_to_text(value).lower() in AFFIRMATIVE_TOKENS


def parse_amount(value: Any) -> float:
    """Read a fee amount; unreadable -> 0.0.

    Accepts thousands separators and an ``Rs``/``INR``/``₹`` prefix.
    """
    text = cell_to_text(value)
    if not text:
        return 0.0
    text = _CURRENCY.sub("", text.replace(",", "").replace(" ", ""))
    m = _NUMBER_PREFIX.match(text)
    if not m:
        return 0.0
    amount = float(m.group(0))
    return amount if math.isfinite(amount) else 0.0


def normalize_student_type(value: Any) -> str:
    text = cell_to_text(value).lower()
    return text if text in ("old", "new") else "new"


_GENDERS = {
    "m": "Male",
    "male": "Male",
    "boy": "Male",
    "f": "Female",
    "female": "Female",
    "girl": "Female",
    "o": "Other",
    "other": "Other",
}


def normalize_gender(value: Any, default: str = "Male") -> str:
    return _GENDERS.get(cell_to_text(value).lower(), default)
