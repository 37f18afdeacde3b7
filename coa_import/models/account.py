from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

"""Canonical Account record for the chart-of-accounts ledger.

An Account is created by the row transformer and is never mutated afterwards;
reconciliation produces new records via ``dataclasses.replace``.

Keys:
- business key ``(entity_id, account_code)``: "the same account" across imports
- storage key ``(entity_id, external_id)``: conflict target of the ledger upsert
"""

__all__ = [
    "AccountType",
    "Account",
    "SOURCE_TYPE_EXCEL",
    "DEFAULT_CURRENCY",
]

SOURCE_TYPE_EXCEL = "excel"
DEFAULT_CURRENCY = "IDR"


class AccountType(Enum):
    """Top-level account classes, keyed by the leading digit of the account code."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    @classmethod
    def from_label(cls, label: str) -> AccountType | None:
        """Return the member named by ``label`` (case/whitespace insensitive) or None."""
        try:
            return cls(label.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Account:
    entity_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    external_id: str
    balance: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY
    suspended: bool = False
    source_type: str = SOURCE_TYPE_EXCEL
    parent_id: str | None = None
    level: int = 1
    id: str | None = None  # storage identity, assigned by the ledger

    @property
    def business_key(self) -> tuple[str, str]:
        return (self.entity_id, self.account_code)

    @property
    def storage_key(self) -> tuple[str, str]:
        return (self.entity_id, self.external_id)
