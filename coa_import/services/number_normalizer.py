from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

"""Locale-ambiguous amount parsing.

Accounting exports mix Indonesian/European grouping (``5.600.000,00``) and US
grouping (``5,600,000.00``). ``parse_amount`` never raises: anything it cannot
read becomes zero so that data quality problems surface in row filtering
instead of aborting the import.

Separator rules:
- both ``.`` and ``,`` present: the separator whose last occurrence comes later
  is the decimal point, the other one is grouping
- one separator kind, occurring more than once: grouping (``5.000.000``)
- one separator kind, occurring once, followed by exactly three digits after a
  non-zero integer part of 1-3 digits: grouping (``5,000`` / ``5.000``)
- otherwise the single separator is the decimal point (``5,5`` / ``0.125``)

Leading separators belong to a currency abbreviation (``Rp. 500``) and are
dropped before these rules apply.
"""

__all__ = [
    "parse_amount",
]

ZERO = Decimal("0")

_STRIP_RE = re.compile(r"[^\d.,-]")
_LEADING_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_GROUP_OF_THOUSAND_RE = re.compile(r"-?[1-9]\d{0,2}[.,]\d{3}")


def _canonical(cleaned: str) -> str:
    """Rewrite ``cleaned`` so that ``.`` is the only (decimal) separator."""
    last_comma = cleaned.rfind(",")
    last_dot = cleaned.rfind(".")

    if last_comma != -1 and last_dot != -1:
        if last_comma > last_dot:
            return cleaned.replace(".", "").replace(",", ".")
        return cleaned.replace(",", "")

    sep = "," if last_comma != -1 else "."
    count = cleaned.count(sep)
    if count == 0:
        return cleaned
    if count > 1 or _GROUP_OF_THOUSAND_RE.fullmatch(cleaned):
        return cleaned.replace(sep, "")
    return cleaned.replace(sep, ".")


def parse_amount(raw: Any) -> Decimal:
    """Parse a spreadsheet cell into a Decimal amount.

    >>> parse_amount("5.600.000,00") == parse_amount("5,600,000.00") == Decimal("5600000.00")
    True
    >>> parse_amount(None)
    Decimal('0')
    """
    if raw is None or isinstance(raw, bool):
        return ZERO
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else ZERO
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            return ZERO
        return Decimal(repr(raw))

    cleaned = _STRIP_RE.sub("", str(raw)).lstrip(".,")
    if not cleaned:
        return ZERO

    # parse the leading numeric prefix only, trailing junk is ignored
    match = _LEADING_NUMBER_RE.match(_canonical(cleaned))
    if match is None:
        return ZERO
    try:
        return Decimal(match.group(0))
    except InvalidOperation:  # pragma: no cover - regex only admits valid literals
        return ZERO
