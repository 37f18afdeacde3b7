from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TypeAlias

"""RowData model: one spreadsheet row after header normalization.

``values`` is an ordered mapping from the raw (human authored) header text to
the decoded cell value. Header order is the column order of the sheet.
"""

__all__ = [
    "CellValue",
    "RawRow",
    "RowData",
]

# None is an empty cell
CellValue: TypeAlias = str | int | float | Decimal | bool | datetime | None
RawRow: TypeAlias = Mapping[str, CellValue]


@dataclass(frozen=True)
class RowData:
    """A single data row below the detected header row.

    row_number is the 1-based row number in the source sheet so that skipped
    rows and error log entries can point back at the spreadsheet.
    """
    row_number: int
    values: dict[str, CellValue]
