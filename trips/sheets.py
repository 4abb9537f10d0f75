"""
Workbook parsing and column-name standardization.

The upload is a single Excel workbook with three logical sheets. Sheets are
looked up by case-insensitive name; a missing sheet is not an error, it just
yields no rows (and a warning in the log).
"""

from __future__ import annotations

import io
import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List

import pandas as pd

logger = logging.getLogger(__name__)

RawSheetRow = Dict[str, Any]

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_key(name: Any) -> str:
    """'  Trip  ID ' -> 'Trip_ID'."""
    return _WHITESPACE_RUN.sub("_", str(name).strip())


def standardize_keys(rows: Iterable[RawSheetRow] | None) -> List[RawSheetRow]:
    """Normalize every key of every row so join keys line up across sheets."""
    if not rows:
        return []
    return [{normalize_key(k): v for k, v in row.items()} for row in rows]


def _clean_cell(value: Any) -> Any:
    """
    Convert a pandas cell into a plain Python scalar.

    Returns None for empty cells (NaN / NaT). Integral floats come back as int,
    since pandas upcasts whole-number columns with blanks to float.
    """
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.to_pydatetime()
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    # numpy scalars
    if hasattr(value, "item"):
        return _clean_cell(value.item())
    return value


def dataframe_to_rows(df: pd.DataFrame) -> List[RawSheetRow]:
    """One dict per row; empty cells are left out of the dict entirely."""
    rows: List[RawSheetRow] = []
    columns = list(df.columns)
    for values in df.itertuples(index=False, name=None):
        row: RawSheetRow = {}
        for col, raw in zip(columns, values):
            cell = _clean_cell(raw)
            if cell is None:
                continue
            row[str(col)] = cell
        rows.append(row)
    return rows


def read_workbook(content: bytes) -> Dict[str, List[RawSheetRow]]:
    """
    Parse every sheet of an Excel workbook into raw rows, keyed by sheet name.

    Raises ValueError when the bytes cannot be read as a workbook.
    """
    if not content:
        raise ValueError("Uploaded workbook is empty.")
    try:
        frames = pd.read_excel(io.BytesIO(content), sheet_name=None)
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc
    return {str(name): dataframe_to_rows(df) for name, df in frames.items()}


def find_sheet(workbook: Dict[str, List[RawSheetRow]], name: str) -> List[RawSheetRow] | None:
    """Case-insensitive sheet lookup. Returns None when no sheet matches."""
    wanted = name.lower()
    for sheet_name, rows in workbook.items():
        if sheet_name.lower() == wanted:
            return rows
    logger.warning(
        "Sheet %r not found in workbook (sheets: %s)",
        name,
        ", ".join(workbook) or "none",
        extra={"sheet": name},
    )
    return None
