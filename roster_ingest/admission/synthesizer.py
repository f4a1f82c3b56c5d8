from __future__ import annotations

from dataclasses import dataclass

from ..classes.resolver import class_token

"""Admission-number synthesizer.

Many school exports leave the admission number blank. Instead of a random id
(which would create a new student on every re-import), a missing number is
derived from the row itself:

    AUTO-<CLASS TOKEN>-<7 char base36 FNV-1a hash>

The hash covers class token, name, father phone, date of birth, sheet name and
row number. Re-importing the same row yields the same id; two siblings with the
same name and phone in the same class still differ by row number. The ``AUTO-``
prefix keeps synthesized ids apart from real admission numbers.
"""

__all__ = [
    "AUTO_PREFIX",
    "AdmissionNumber",
    "stable_hash",
    "synthesize_admission_number",
]

AUTO_PREFIX = "AUTO-"

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
_MASK32 = 0xFFFFFFFF

HASH_WIDTH = 7
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class AdmissionNumber:
    value: str
    was_generated: bool


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le")
    return [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def stable_hash(text: str) -> str:
    """32-bit FNV-1a over UTF-16 code units, base36, upper case, 7 chars.

    A 32-bit value needs at most 7 base36 digits, so the result is never
    truncated, only left-padded with zeros.
    """
    h = FNV_OFFSET_BASIS
    for unit in _utf16_units(text):
        h ^= unit
        h = (h * FNV_PRIME) & _MASK32
    return _base36(h).rjust(HASH_WIDTH, "0")[:HASH_WIDTH]


def synthesize_admission_number(
    raw_admission: str | None,
    full_name: str,
    father_phone: str,
    dob: str | None,
    class_label: str,
    sheet_name: str,
    row_number: int,
) -> AdmissionNumber:
    cleaned = str(raw_admission or "").strip()
    if cleaned:
        return AdmissionNumber(value=cleaned, was_generated=False)

    cls = class_token(class_label or sheet_name or "gen").upper() or "GEN"
    seed = "|".join([
        cls,
        str(full_name or "").lower().strip(),
        str(father_phone or "").strip(),
        str(dob or "").strip(),
        str(sheet_name or "").lower().strip(),
        str(row_number),
    ])
    return AdmissionNumber(value=f"{AUTO_PREFIX}{cls}-{stable_hash(seed)}", was_generated=True)
