from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from ..errors import DecodeError

"""Tabular decoder.

Reads a roster file into one row matrix per sheet:
- workbooks (.xlsx/.xlsm via openpyxl, legacy .xls via xlrd) are read raw with
  no header so the header locator can find the real header row; native date
  cells stay datetime values
- CSV is read as text only (dtype=str) with the BOM stripped; quoting and
  doubled quotes are handled by the pandas parser

Only "cannot open / cannot parse" is an error here. Data quality is a row-level
concern handled later.
"""

__all__ = [
    "SheetMatrix",
    "FileKind",
    "detect_kind",
    "read_tabular",
    "read_workbook",
    "read_csv",
]

FileKind = Literal["csv", "workbook"]

CSV_SHEET_NAME = "CSV"

_WORKBOOK_ENGINES = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
    ".xls": "xlrd",
}


@dataclass
class SheetMatrix:
    sheet_name: str
    rows: list[list[Any]]  # cell values, None for empty cells

    def non_empty_rows(self) -> int:
        return sum(1 for r in self.rows if not _row_is_empty(r))


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):  # pragma: no cover - non-scalar cell
        return False


def _row_is_empty(row: list[Any]) -> bool:
    return all(_is_missing(v) for v in row)


def _frame_to_rows(df: pd.DataFrame) -> list[list[Any]]:
    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        rows.append([None if _is_missing(v) else v for v in raw])
    return rows


def detect_kind(path: Path) -> FileKind:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return "csv"
    if suffix in _WORKBOOK_ENGINES:
        return "workbook"
    raise DecodeError(f"unsupported file type '{path.suffix}': expected .csv, .xls, .xlsx or .xlsm")


def read_workbook(path: Path) -> list[SheetMatrix]:
    """Read every sheet of a workbook, in workbook order."""
    engine = _WORKBOOK_ENGINES.get(path.suffix.lower(), "openpyxl")
    try:
        sheets: list[SheetMatrix] = []
        with pd.ExcelFile(path, engine=engine) as xls:
            for name in xls.sheet_names:
                # raw read, no header; keep "NA"/"N/A" text as text
                df = xls.parse(name, header=None, keep_default_na=False)
                sheets.append(SheetMatrix(sheet_name=str(name), rows=_frame_to_rows(df)))
    except Exception as e:
        raise DecodeError(f"cannot read workbook '{path.name}': {e}") from e
    return sheets


def _csv_width(path: Path) -> int:
    """Widest record in the file; pandas sizes columns from the first line only."""
    with path.open(newline="", encoding="utf-8-sig") as f:
        return max((len(record) for record in csv.reader(f)), default=0)


def read_csv(path: Path) -> SheetMatrix:
    """Read a CSV roster as a single text matrix named ``CSV``.

    Rows may have different lengths (title lines above the header, trailing
    empty cells dropped by the exporting tool); short rows are padded.
    """
    try:
        width = _csv_width(path)
        if width == 0:
            raise DecodeError("CSV file is empty or has no data rows.")
        df = pd.read_csv(
            path,
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise DecodeError("CSV file is empty or has no data rows.") from e
    except (pd.errors.ParserError, csv.Error, UnicodeDecodeError, OSError) as e:
        raise DecodeError(f"cannot parse CSV '{path.name}': {e}") from e

    matrix = SheetMatrix(sheet_name=CSV_SHEET_NAME, rows=_frame_to_rows(df))
    if matrix.non_empty_rows() < 2:
        raise DecodeError("CSV file is empty or has no data rows.")
    return matrix


def read_tabular(path: Path, kind: FileKind | None = None) -> list[SheetMatrix]:
    """Decode ``path`` into sheet matrices.

    Parameters
    ----------
    path: roster file
    kind: "csv" or "workbook"; inferred from the suffix when omitted
    """
    if not path.exists():
        raise DecodeError(f"file not found: {path}")
    if kind is None:
        kind = detect_kind(path)
    if kind == "csv":
        return [read_csv(path)]
    return read_workbook(path)
