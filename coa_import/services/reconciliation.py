from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from ..models.account import Account
from ..models.import_result import ReconcileResult

"""Merge transformed candidates into the existing ledger.

Matching uses the business key ``(entity_id, account_code)``, never
``external_id``: every import synthesizes fresh external ids, so matching on
them would duplicate accounts on each re-import.

Update contract is narrow: a matched account keeps every stored field (name,
type, currency, suspended flag, parent, level, external id, storage id) and
only takes the newly imported balance. Classification edits made in the
ledger after the first import survive re-imports.

Candidates are resolved against a snapshot of the ledger taken before the
batch; a candidate never sees a sibling from the same batch.
"""

__all__ = [
    "reconcile",
]

logger = logging.getLogger(__name__)


def reconcile(candidates: Iterable[Account], existing_ledger: Iterable[Account]) -> ReconcileResult:
    """Split ``candidates`` into insert records and narrow update records."""
    snapshot: dict[tuple[str, str], Account] = {}
    for entry in existing_ledger:
        # duplicated business keys in the ledger: the first stored row is updated
        snapshot.setdefault(entry.business_key, entry)

    to_insert: list[Account] = []
    to_update: list[Account] = []
    for candidate in candidates:
        current = snapshot.get(candidate.business_key)
        if current is None:
            to_insert.append(candidate)
            continue
        to_update.append(replace(current, balance=candidate.balance))
        logger.debug(
            "update entity=%s code=%s balance %s -> %s",
            candidate.entity_id,
            candidate.account_code,
            current.balance,
            candidate.balance,
        )

    logger.debug("reconciled inserted=%d updated=%d", len(to_insert), len(to_update))
    return ReconcileResult(to_insert=to_insert, to_update=to_update)
