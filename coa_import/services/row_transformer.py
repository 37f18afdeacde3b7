from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..models.account import DEFAULT_CURRENCY, Account, AccountType
from ..models.row_data import CellValue, RawRow, RowData
from .column_resolver import resolve_column
from .number_normalizer import parse_amount

"""Raw spreadsheet row -> canonical Account.

Rows without an account code, and spreadsheet summary rows (totals,
differences), are rejected with ``None``. The account type comes from an
explicit type column when it names a valid type, otherwise from the leading
digit of the account code.
"""

__all__ = [
    "ACCOUNT_CODE_ALIASES",
    "ACCOUNT_NAME_ALIASES",
    "BALANCE_ALIASES",
    "SKIP_KEYWORDS",
    "TransformOutcome",
    "generate_external_id",
    "infer_account_type",
    "transform_row",
    "transform_rows",
]

logger = logging.getLogger(__name__)

ACCOUNT_CODE_ALIASES = (
    "account no", "account_no", "accountno",
    "account_code", "account code", "account number",
    "kode", "kode akun", "nomor akun", "no akun", "code", "no",
)
ACCOUNT_NAME_ALIASES = (
    "account name", "account_name", "accountname",
    "account", "nama", "nama akun", "uraian", "keterangan", "name", "description",
)
ACCOUNT_TYPE_ALIASES = (
    "account_type", "account type", "type",
    "tipe", "tipe akun", "jenis", "kategori",
)
# specific ending-balance columns must beat a generic "balance" column
BALANCE_ALIASES = (
    "ending balance", "saldo akhir", "final balance", "ending_balance", "endingbalance",
    "balance", "saldo", "amount", "nilai", "jumlah",
)
CURRENCY_ALIASES = ("currency", "mata uang", "curr")
SUSPENDED_ALIASES = ("suspended", "status", "aktif", "active")
LEVEL_ALIASES = ("lvl", "level", "tingkat", "hierarchy")
DEBIT_CREDIT_ALIASES = ("db/cr", "dbcr", "db cr", "debit/credit", "type")

SKIP_KEYWORDS: tuple[str, ...] = ("total", "subtotal", "difference", "grand total", "sub total")

_PREFIX_TYPES = {
    "1": AccountType.ASSET,
    "2": AccountType.LIABILITY,
    "3": AccountType.EQUITY,
    "4": AccountType.REVENUE,
    "5": AccountType.EXPENSE,
}
_TRUE_STRINGS = frozenset({"true", "1", "suspended"})


@dataclass
class TransformOutcome:
    accounts: list[Account] = field(default_factory=list)
    skipped: list[RowData] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _text(value: CellValue) -> str:
    if value is None:
        return ""
    # numeric codes come back from openpyxl as 1100 or 1100.0
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _debit_credit_side(indicator: CellValue) -> str | None:
    text = _text(indicator).upper()
    if not text:
        return None
    if "CR" in text or "CREDIT" in text or "KREDIT" in text:
        return "credit"
    if "DB" in text or "DEBIT" in text:
        return "debit"
    return None


def infer_account_type(account_code: str, indicator: CellValue = None) -> AccountType:
    """Infer the account type from the code prefix, refined by a debit/credit indicator.

    The code prefix always wins. The indicator only decides when the code does
    not start with 1-5: debit side -> ASSET, credit side -> LIABILITY.
    """
    side = _debit_credit_side(indicator)
    prefix_type = _PREFIX_TYPES.get(account_code[:1])
    if prefix_type is not None:
        if side == "credit" and prefix_type in (AccountType.ASSET, AccountType.EXPENSE):
            logger.debug("credit indicator conflicts with code=%s, keeping %s", account_code, prefix_type.value)
        elif side == "debit" and prefix_type in (AccountType.LIABILITY, AccountType.EQUITY, AccountType.REVENUE):
            logger.debug("debit indicator conflicts with code=%s, keeping %s", account_code, prefix_type.value)
        return prefix_type
    if side == "credit":
        return AccountType.LIABILITY
    return AccountType.ASSET


def _to_bool(value: CellValue) -> bool:
    if value is True:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _to_level(value: CellValue) -> int:
    if value is None or _text(value) == "":
        return 1
    level = int(parse_amount(value))
    return level if level >= 1 else 1


def generate_external_id(entity_id: str, account_code: str) -> str:
    """Opaque identity for a newly imported account: scope + ms timestamp + random part."""
    return f"excel:{entity_id}:{account_code}:{int(time.time() * 1000)}:{uuid.uuid4().hex[:12]}"


def transform_row(
    row: RawRow,
    entity_id: str,
    *,
    default_currency: str = DEFAULT_CURRENCY,
    skip_keywords: Sequence[str] = SKIP_KEYWORDS,
) -> Account | None:
    """Convert one raw row into an Account, or None when the row is not an account."""
    code = _text(resolve_column(row, ACCOUNT_CODE_ALIASES))
    name = _text(resolve_column(row, ACCOUNT_NAME_ALIASES))

    if not code and not name:
        logger.debug("row skipped: no account code or name")
        return None

    code_l, name_l = code.lower(), name.lower()
    for keyword in skip_keywords:
        if keyword in code_l or keyword in name_l:
            logger.debug("row skipped: summary keyword %r in code=%r name=%r", keyword, code, name)
            return None

    if not code:
        logger.debug("row skipped: account code missing for name=%r", name)
        return None

    explicit_type = resolve_column(row, ACCOUNT_TYPE_ALIASES)
    account_type = AccountType.from_label(_text(explicit_type)) if explicit_type is not None else None
    if account_type is None:
        account_type = infer_account_type(code, resolve_column(row, DEBIT_CREDIT_ALIASES))

    currency = _text(resolve_column(row, CURRENCY_ALIASES)).upper()
    # partial "curr" also hits headers like "Current Balance"
    if not currency.isalpha():
        currency = default_currency.upper()

    return Account(
        entity_id=entity_id,
        account_code=code,
        account_name=name,
        account_type=account_type,
        external_id=generate_external_id(entity_id, code),
        balance=parse_amount(resolve_column(row, BALANCE_ALIASES)),
        currency=currency,
        suspended=_to_bool(resolve_column(row, SUSPENDED_ALIASES)),
        level=_to_level(resolve_column(row, LEVEL_ALIASES)),
    )


def transform_rows(
    rows: Iterable[RowData],
    entity_id: str,
    *,
    default_currency: str = DEFAULT_CURRENCY,
    skip_keywords: Sequence[str] = SKIP_KEYWORDS,
) -> TransformOutcome:
    outcome = TransformOutcome()
    for row in rows:
        account = transform_row(
            row.values, entity_id, default_currency=default_currency, skip_keywords=skip_keywords
        )
        if account is None:
            outcome.skipped.append(row)
        else:
            outcome.accounts.append(account)
    return outcome
