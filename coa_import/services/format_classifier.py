from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from ..models.row_data import RawRow

"""Minimum-schema gate for chart-of-accounts spreadsheets.

A sheet is importable ("standard") when its headers contain both an account
code column and an account name column. Anything else is rejected before any
row is transformed.
"""

__all__ = [
    "SheetFormat",
    "classify_format",
    "classify_columns",
    "is_account_code_column",
    "is_account_name_column",
]

logger = logging.getLogger(__name__)


class SheetFormat(Enum):
    STANDARD = "standard"
    UNKNOWN = "unknown"


_CODE_EXACT = frozenset({"kode", "code", "no", "account no", "account_no", "accountno"})
_NAME_EXACT = frozenset({"name", "account", "account name", "account_name", "accountname"})


def is_account_code_column(col: str) -> bool:
    col = col.lower().strip()
    return (
        ("account" in col and ("code" in col or "no" in col or "number" in col))
        or col in _CODE_EXACT
        or "kode akun" in col
        or "nomor" in col
    )


def is_account_name_column(col: str) -> bool:
    col = col.lower().strip()
    return (
        ("account" in col and "name" in col)
        or col in _NAME_EXACT
        or "nama" in col
        or "uraian" in col
        or "keterangan" in col
    )


def classify_columns(columns: Iterable[str]) -> SheetFormat:
    cols = [str(c) for c in columns]
    has_code = any(is_account_code_column(c) for c in cols)
    has_name = any(is_account_name_column(c) for c in cols)
    result = SheetFormat.STANDARD if has_code and has_name else SheetFormat.UNKNOWN
    logger.debug("format detection has_code=%s has_name=%s format=%s", has_code, has_name, result.value)
    return result


def classify_format(first_data_row: RawRow) -> SheetFormat:
    """Classify a sheet from the headers of its first data row."""
    return classify_columns(first_data_row.keys())
