from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..models.row_data import CellValue, RowData

"""Spreadsheet decoding and header-row detection.

Exports from accounting packages put report titles, company names and period
lines above the real table, so the header row is located heuristically
(``locate_header``) and the rows below it are re-keyed by that header
(``normalize_sheet``). The engine downstream only ever sees decoded cells.
"""

__all__ = [
    "DEFAULT_HEADER_SCAN_ROWS",
    "HEADER_ANCHORS",
    "HEADER_MARKERS",
    "SheetData",
    "read_excel_file",
    "locate_header",
    "normalize_sheet",
]

logger = logging.getLogger(__name__)

DEFAULT_HEADER_SCAN_ROWS = 20
HEADER_ANCHORS: tuple[str, ...] = ("account",)
HEADER_MARKERS: tuple[str, ...] = ("no", "name", "code")

Grid = list[list[CellValue]]


@dataclass
class SheetData:
    sheet_name: str
    header_row: int  # 0-based index into the raw grid
    columns: list[str]
    rows: list[RowData]


def _cell(value: object) -> CellValue:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):  # array-likes are not cells
        return str(value)
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value  # type: ignore[return-value]


def read_excel_file(
    path: Path, target_sheets: Iterable[str] | None = None, keep_na_strings: list[str] | None = None
) -> dict[str, Grid]:
    """Read a workbook into raw cell grids keyed by sheet name (workbook order).

    Parameters
    ----------
    path: workbook path (.xlsx / .xlsm)
    target_sheets: restrict to these sheet names (None = all sheets)
    keep_na_strings: strings that pandas must NOT turn into NaN (e.g. ['NA'])
    """
    import pandas._libs.parsers as parsers

    if keep_na_strings:
        na_values = list(parsers.STR_NA_VALUES - set(keep_na_strings))
        keep_default_na = False
    else:
        na_values = None
        keep_default_na = True

    grids: dict[str, Grid] = {}
    with pd.ExcelFile(path) as xls:
        for name in xls.sheet_names:
            if target_sheets is not None and str(name) not in target_sheets:
                continue
            # no header: the header row is detected afterwards
            df = xls.parse(
                name, header=None, dtype=object, keep_default_na=keep_default_na, na_values=na_values
            )
            grids[str(name)] = [[_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]
    return grids


def locate_header(
    rows: Sequence[Sequence[CellValue]],
    max_scan: int = DEFAULT_HEADER_SCAN_ROWS,
    anchors: Sequence[str] = HEADER_ANCHORS,
    markers: Sequence[str] = HEADER_MARKERS,
) -> int:
    """Return the index of the header row among the first ``max_scan`` rows.

    A row qualifies when its joined, lower-cased text contains one of the
    ``anchors`` and one of the ``markers``. Falls back to row 0.
    """
    for index, row in enumerate(rows[:max_scan]):
        if not row:
            continue
        text = "|".join("" if c is None else str(c) for c in row).lower()
        if any(a in text for a in anchors) and any(m in text for m in markers):
            logger.debug("header row detected index=%d cells=%s", index, list(row))
            return index
    logger.debug("no header row detected in first %d rows, using row 0", max_scan)
    return 0


def _header_names(header: Sequence[CellValue]) -> list[str]:
    names: list[str] = []
    seen: dict[str, int] = {}
    for i, cell in enumerate(header):
        name = "" if cell is None else str(cell).strip()
        if not name:
            name = f"column_{i + 1}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        names.append(name)
    return names


def normalize_sheet(
    grid: Sequence[Sequence[CellValue]],
    sheet_name: str,
    header_index: int = 0,
    null_sentinels: set[str] | None = None,
) -> SheetData:
    """Key every row below ``header_index`` by the header row.

    Entirely empty rows are dropped. Strings in ``null_sentinels`` (compared
    upper-cased after stripping) become empty cells.
    """
    if header_index >= len(grid):
        return SheetData(sheet_name=sheet_name, header_row=header_index, columns=[], rows=[])

    columns = _header_names(grid[header_index])
    rows: list[RowData] = []
    for offset, raw in enumerate(grid[header_index + 1:], start=header_index + 2):
        values: dict[str, CellValue] = {}
        for i, col in enumerate(columns):
            val = raw[i] if i < len(raw) else None
            if isinstance(val, str):
                stripped = val.strip()
                if stripped == "" or (null_sentinels and stripped.upper() in null_sentinels):
                    val = None
            values[col] = val
        if all(v is None for v in values.values()):
            continue
        rows.append(RowData(row_number=offset, values=values))

    return SheetData(sheet_name=sheet_name, header_row=header_index, columns=columns, rows=rows)
