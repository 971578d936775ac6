"""Work list extraction from the unified payroll spreadsheet.

The spreadsheet holds one sheet per competency (``MM.YYYY``) with a title
block above the header row. Columns are located by accent- and
case-insensitive substring match, so small wording changes in the header do
not break the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .periods import PeriodInfo
from .utils import log_debug, log_line, normalize_text, only_digits

# Zero-based index of the header row (row 4 in the workbook).
HEADER_ROW_INDEX = 3
ID_LENGTH = 14
# Numeric cells drop the leading zeros their display format shows; a bare
# number this long or longer is padded back to ID_LENGTH.
MIN_NUMERIC_ID_LENGTH = 12

TYPE_COLUMN_KEYS = ("tipo", "folha")
ID_COLUMN_KEYS = ("cnpj",)
COMPANY_COLUMN_KEYS = ("empresa",)
OWNER_COLUMN_KEYS = ("analista",)

WITH_EMPLOYEES_MARKER = "com funcion"
PLACEHOLDER_MARKER = "procv"
DEFAULT_OWNER = "Unknown"


class WorklistError(RuntimeError):
    """Raised when the spreadsheet cannot produce a usable work list."""


@dataclass(frozen=True)
class WorkItem:
    """One company to process end to end."""

    id: str
    owner: str
    display_name: str


def find_spreadsheet(directory: Path, keyword: str) -> Path:
    """Return the first ``.xlsx`` in ``directory`` whose name contains ``keyword``."""

    directory = Path(directory)
    if not directory.is_dir():
        raise WorklistError(f"Spreadsheet directory {directory} does not exist")

    candidates = sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.name.lower().endswith(".xlsx") and keyword in path.name
    )
    if not candidates:
        raise WorklistError(f"No .xlsx file containing '{keyword}' found in {directory}")
    return candidates[0]


def pick_column(columns: Iterable[object], predicates: Sequence[str]) -> Optional[str]:
    """Return the first column whose normalized name contains every predicate."""

    for column in columns:
        normalized = normalize_text(column)
        if all(predicate in normalized for predicate in predicates):
            return str(column)
    return None


def _cell(row: pd.Series, column: Optional[str]) -> str:
    if column is None:
        return ""
    value = row.get(column, "")
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _read_sheet(path: Path, sheet_key: str) -> pd.DataFrame:
    with pd.ExcelFile(path, engine="openpyxl") as workbook:
        if sheet_key not in workbook.sheet_names:
            raise WorklistError(
                f"Sheet '{sheet_key}' not found in {path.name}. "
                f"Available sheets: {', '.join(workbook.sheet_names)}"
            )
        frame = workbook.parse(sheet_key, header=HEADER_ROW_INDEX, dtype=str)

    frame = frame.dropna(how="all")
    frame.columns = [str(column).strip() for column in frame.columns]
    return frame.fillna("")


def _normalize_id(raw_id: str) -> str:
    digits = only_digits(raw_id)
    if raw_id.isdigit() and MIN_NUMERIC_ID_LENGTH <= len(digits) < ID_LENGTH:
        return digits.zfill(ID_LENGTH)
    return digits


def rows_to_work_items(
    frame: pd.DataFrame,
    *,
    type_col: str,
    id_col: str,
    company_col: Optional[str] = None,
    owner_col: Optional[str] = None,
) -> List[WorkItem]:
    """Filter and deduplicate spreadsheet rows into work items.

    A row is kept when its payroll type mentions employees and its id has
    exactly 14 digits and is not a lookup-formula placeholder. Only the first
    row per ``(id, owner)`` survives.
    """

    items: List[WorkItem] = []
    seen: set[tuple[str, str]] = set()

    for _, row in frame.iterrows():
        if WITH_EMPLOYEES_MARKER not in normalize_text(_cell(row, type_col)):
            continue

        raw_id = _cell(row, id_col)
        if not raw_id or PLACEHOLDER_MARKER in normalize_text(raw_id):
            continue

        digits = _normalize_id(raw_id)
        if len(digits) != ID_LENGTH:
            log_debug(f"[WORKLIST] Skipping id {raw_id!r}: expected {ID_LENGTH} digits")
            continue

        owner = _cell(row, owner_col) or DEFAULT_OWNER
        display_name = _cell(row, company_col) or digits

        key = (digits, owner)
        if key in seen:
            continue
        seen.add(key)
        items.append(WorkItem(id=digits, owner=owner, display_name=display_name))

    return items


def load_work_items(path: Path, period: PeriodInfo) -> List[WorkItem]:
    """Read ``period``'s sheet from ``path`` and return the clean work list."""

    path = Path(path)
    log_line(f"[WORKLIST] Spreadsheet selected: {path}")

    frame = _read_sheet(path, period.sheet_key)
    if frame.empty:
        raise WorklistError(
            f"Sheet '{period.sheet_key}' is empty (after header on row {HEADER_ROW_INDEX + 1})."
        )

    columns = list(frame.columns)
    type_col = pick_column(columns, TYPE_COLUMN_KEYS)
    id_col = pick_column(columns, ID_COLUMN_KEYS)
    company_col = pick_column(columns, COMPANY_COLUMN_KEYS)
    owner_col = pick_column(columns, OWNER_COLUMN_KEYS)

    if not type_col or not id_col:
        raise WorklistError(
            "Required columns not found. "
            f"type_col={type_col}, id_col={id_col}. Columns: {', '.join(columns)}"
        )

    log_line(f"[WORKLIST] Payroll type column: {type_col}")
    log_line(f"[WORKLIST] Id column: {id_col}")
    log_line(f"[WORKLIST] Company column: {company_col or 'not found (falling back to id)'}")
    log_line(f"[WORKLIST] Owner column: {owner_col or f'not found (falling back to {DEFAULT_OWNER})'}")

    items = rows_to_work_items(
        frame,
        type_col=type_col,
        id_col=id_col,
        company_col=company_col,
        owner_col=owner_col,
    )
    if not items:
        raise WorklistError('No valid id found with payroll type "com funcionário".')

    log_line(f"[WORKLIST] Companies to process: {len(items)}")
    return items


__all__ = [
    "WorkItem",
    "WorklistError",
    "find_spreadsheet",
    "pick_column",
    "rows_to_work_items",
    "load_work_items",
    "HEADER_ROW_INDEX",
]
