from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import replace

from ..errors import PersistenceError
from ..models.account import Account

"""In-memory LedgerGateway used for mock mode (no database) and tests.

Stores accounts by storage key ``(entity_id, external_id)`` and mirrors the
PostgreSQL upsert: a known storage key is overwritten (keeping its id), an
unknown one is inserted with a new id. A batch is applied all-or-nothing.
"""

__all__ = [
    "InMemoryLedger",
]


class InMemoryLedger:
    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._rows: dict[tuple[str, str], Account] = {}
        self.upsert_calls = 0
        for account in accounts:
            self._store(self._rows, account)

    @staticmethod
    def _store(rows: dict[tuple[str, str], Account], account: Account) -> None:
        current = rows.get(account.storage_key)
        if current is not None:
            account = replace(account, id=current.id)
        elif account.id is None:
            account = replace(account, id=uuid.uuid4().hex)
        rows[account.storage_key] = account

    def fetch_existing(self, entity_ids: Sequence[str], account_codes: Sequence[str]) -> list[Account]:
        entities, codes = set(entity_ids), set(account_codes)
        return [a for a in self._rows.values() if a.entity_id in entities and a.account_code in codes]

    def upsert(self, records: Sequence[Account]) -> int:
        self.upsert_calls += 1
        staged = dict(self._rows)
        for record in records:
            if not record.entity_id or not record.external_id:
                raise PersistenceError(f"record without storage key: code={record.account_code!r}")
            self._store(staged, record)
        self._rows = staged
        return len({r.storage_key for r in records})

    def accounts(self, entity_id: str | None = None) -> list[Account]:
        return [a for a in self._rows.values() if entity_id is None or a.entity_id == entity_id]

    def edit(self, account: Account) -> None:
        """Replace a stored account (stands in for a manual edit in the ledger UI)."""
        if account.storage_key not in self._rows:
            raise KeyError(account.storage_key)
        self._rows[account.storage_key] = account

    def __len__(self) -> int:
        return len(self._rows)
