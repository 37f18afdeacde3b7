from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from decimal import Decimal
from typing import Any, Protocol

from ..errors import PersistenceError
from ..models.account import Account, AccountType

"""Ledger persistence gateway.

The engine reads the existing ledger once (``fetch_existing``) and writes the
reconciled batch once (``upsert``). The PostgreSQL implementation upserts with
psycopg2.extras.execute_values keyed by ``(entity_id, external_id)``: inserts
carry fresh external ids and cannot collide, updates reuse the stored external
id and overwrite in place. The upsert runs in its own transaction so a failed
batch leaves the ledger untouched.

Expected table (unique constraint required for ON CONFLICT)::

    CREATE TABLE coa_accounts (
        id bigserial PRIMARY KEY,
        entity_id text NOT NULL,
        account_code text NOT NULL,
        account_name text NOT NULL,
        account_type text NOT NULL,
        balance numeric(20, 2) NOT NULL DEFAULT 0,
        currency text NOT NULL DEFAULT 'IDR',
        suspended boolean NOT NULL DEFAULT false,
        source_type text NOT NULL,
        parent_id text,
        lvl integer NOT NULL DEFAULT 1,
        external_id text NOT NULL,
        UNIQUE (entity_id, external_id)
    );
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import execute_values
except ImportError:  # pragma: no cover
    execute_values = None  # type: ignore

__all__ = [
    "LedgerGateway",
    "PostgresLedger",
    "DEFAULT_LEDGER_TABLE",
]

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_TABLE = "coa_accounts"

# model field -> table column, in insert order
_WRITE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("entity_id", "entity_id"),
    ("account_code", "account_code"),
    ("account_name", "account_name"),
    ("account_type", "account_type"),
    ("balance", "balance"),
    ("currency", "currency"),
    ("suspended", "suspended"),
    ("source_type", "source_type"),
    ("parent_id", "parent_id"),
    ("level", "lvl"),
    ("external_id", "external_id"),
)
_CONFLICT_COLUMNS = ("entity_id", "external_id")


class LedgerGateway(Protocol):
    """Persistence collaborator consumed by the import pipeline."""

    def fetch_existing(self, entity_ids: Sequence[str], account_codes: Sequence[str]) -> list[Account]:
        ...

    def upsert(self, records: Sequence[Account]) -> int:
        """Write ``records`` keyed by (entity_id, external_id); return the written count."""
        ...


def _validate_identifier(name: str) -> str:
    # schema-qualified names allowed: public.coa_accounts
    if not all(part.replace("_", "").isalnum() for part in name.split(".")):
        raise ValueError(f"invalid table name: {name!r}")
    return name


def _row_values(account: Account) -> tuple[Any, ...]:
    values: list[Any] = []
    for attr, _ in _WRITE_COLUMNS:
        value = getattr(account, attr)
        if isinstance(value, AccountType):
            value = value.value
        values.append(value)
    return tuple(values)


def _account_from_row(row: Sequence[Any]) -> Account:
    (
        pk, entity_id, code, name, account_type, balance,
        currency, suspended, source_type, parent_id, lvl, external_id,
    ) = row
    return Account(
        id=None if pk is None else str(pk),
        entity_id=str(entity_id),
        account_code=str(code),
        account_name=name or "",
        account_type=AccountType.from_label(account_type or "") or AccountType.ASSET,
        balance=Decimal(str(balance)) if balance is not None else Decimal("0"),
        currency=currency or "IDR",
        suspended=bool(suspended),
        source_type=source_type or "excel",
        parent_id=None if parent_id is None else str(parent_id),
        level=int(lvl) if lvl is not None else 1,
        external_id=str(external_id),
    )


class PostgresLedger:
    """LedgerGateway backed by a psycopg2 cursor."""

    def __init__(self, cursor: Any, table: str = DEFAULT_LEDGER_TABLE, page_size: int = 1000) -> None:
        self.cursor = cursor
        self.table = _validate_identifier(table)
        self.page_size = page_size

    def fetch_existing(self, entity_ids: Sequence[str], account_codes: Sequence[str]) -> list[Account]:
        if not entity_ids or not account_codes:
            return []
        sql = (
            "SELECT id, entity_id, account_code, account_name, account_type, balance, "
            "currency, suspended, source_type, parent_id, lvl, external_id "
            f"FROM {self.table} WHERE entity_id = ANY(%s) AND account_code = ANY(%s) ORDER BY id"
        )
        try:
            self.cursor.execute(sql, (list(entity_ids), list(dict.fromkeys(account_codes))))
            rows = self.cursor.fetchall()
        except Exception as e:
            # keep the connection usable for the next file
            try:
                self.cursor.execute("ROLLBACK")
            except Exception:  # pragma: no cover
                logger.warning("rollback failed after fetch error table=%s", self.table, exc_info=True)
            raise PersistenceError(f"failed reading ledger table {self.table}: {e}") from e
        return [_account_from_row(r) for r in rows]

    def upsert(self, records: Sequence[Account]) -> int:
        if execute_values is None:
            raise PersistenceError("psycopg2 not available")

        # one row per storage key: a statement may not touch the same conflict row twice,
        # later records win
        latest = {r.storage_key: r for r in records}
        rows = [_row_values(r) for r in latest.values()]
        if not rows:
            return 0

        cols_sql = ",".join(f'"{col}"' for _, col in _WRITE_COLUMNS)
        conflict_sql = ",".join(f'"{c}"' for c in _CONFLICT_COLUMNS)
        update_sql = ",".join(
            f'"{col}" = EXCLUDED."{col}"' for _, col in _WRITE_COLUMNS if col not in _CONFLICT_COLUMNS
        )
        sql = (
            f"INSERT INTO {self.table} ({cols_sql}) VALUES %s "
            f"ON CONFLICT ({conflict_sql}) DO UPDATE SET {update_sql}"
        )

        start = time.time()
        try:
            self.cursor.execute("BEGIN")
            execute_values(self.cursor, sql, rows, page_size=self.page_size)
            self.cursor.execute("COMMIT")
        except Exception as e:
            try:
                self.cursor.execute("ROLLBACK")
            except Exception:  # pragma: no cover
                logger.warning("rollback failed after upsert error table=%s", self.table, exc_info=True)
            raise PersistenceError(f"ledger upsert failed: {e}") from e

        logger.debug(
            "upserted table=%s rows=%d elapsed=%.3fs", self.table, len(rows), time.time() - start
        )
        return len(rows)
