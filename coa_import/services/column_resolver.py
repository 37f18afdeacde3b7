from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ..models.row_data import CellValue, RawRow

"""Fuzzy lookup of a logical field in a row with human-authored headers.

Three strategies are tried in order, the first hit wins:

1. exact match of normalized header and alias (alias order decides ties)
2. multi-word containment: every significant word (> 2 chars) of a multi-word
   alias occurs in the header; single-word aliases are skipped here
3. partial match, restricted to a short allow-list of high-confidence keywords

Resolution is pure: no row is modified and the same input always yields the
same cell.
"""

__all__ = [
    "ColumnAlias",
    "PARTIAL_MATCH_KEYWORDS",
    "normalize_header",
    "resolve_column",
]

logger = logging.getLogger(__name__)

ColumnAlias = Sequence[str]

PARTIAL_MATCH_KEYWORDS: frozenset[str] = frozenset(
    {
        "kode", "nama", "uraian", "keterangan",
        "currency", "curr", "suspended", "aktif", "active",
        "st", "lvl", "level", "debit", "credit",
    }
)

_SEPARATORS_RE = re.compile(r"[_\-/]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_header(text: object) -> str:
    """Lower-case, trim, map ``_ - /`` to spaces and collapse whitespace."""
    lowered = _SEPARATORS_RE.sub(" ", str(text).lower())
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def _is_blank(value: CellValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return value != value  # NaN from pandas
    return False


def resolve_column(row: RawRow, aliases: ColumnAlias) -> CellValue | None:
    """Return the cell of the best matching column for ``aliases`` or None."""
    # normalized header -> cell (first occurrence of a duplicated header wins)
    normalized: dict[str, CellValue] = {}
    for header, value in row.items():
        normalized.setdefault(normalize_header(header), value)

    for alias in aliases:
        key = normalize_header(alias)
        if key in normalized and not _is_blank(normalized[key]):
            logger.debug("exact column match alias=%r header=%r", alias, key)
            return normalized[key]

    for alias in aliases:
        words = [w for w in normalize_header(alias).split(" ") if len(w) > 2]
        if len(words) < 2:
            continue
        for header, value in normalized.items():
            if all(w in header for w in words) and not _is_blank(value):
                logger.debug("multi-word column match alias=%r header=%r", alias, header)
                return value

    for alias in aliases:
        key = normalize_header(alias)
        if key not in PARTIAL_MATCH_KEYWORDS:
            continue
        for header, value in normalized.items():
            if key in header and not _is_blank(value):
                logger.debug("partial column match alias=%r header=%r", alias, header)
                return value

    logger.debug("no column match for aliases=%s", list(aliases))
    return None
