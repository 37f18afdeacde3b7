from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .account import Account

"""Result models for reconciliation, single imports and directory runs."""

__all__ = [
    "ReconcileResult",
    "ImportSummary",
    "ImportPreview",
    "FileStat",
    "ProcessingResult",
]


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation pass over a candidate batch."""
    to_insert: list[Account] = field(default_factory=list)
    to_update: list[Account] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return len(self.to_insert)

    @property
    def updated_count(self) -> int:
        return len(self.to_update)

    @property
    def records(self) -> list[Account]:
        """All records to hand to the ledger upsert, inserts first."""
        return [*self.to_insert, *self.to_update]


@dataclass(frozen=True)
class ImportSummary:
    """Caller-facing result of a successful import of one spreadsheet."""
    inserted_count: int
    updated_count: int
    total_count: int
    skipped_rows: int = 0
    header_row: int = 0  # 0-based index of the detected header row


@dataclass(frozen=True)
class ImportPreview:
    """Read-only projection of the first transformed rows, for display before import."""
    format: str  # "standard" | "unknown"
    header_row: int
    columns: list[str]
    rows: list[Account]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [
            {
                "account_code": a.account_code,
                "account_name": a.account_name,
                "account_type": a.account_type.value,
                "balance": str(a.balance),
                "currency": a.currency,
                "suspended": a.suspended,
                "level": a.level,
            }
            for a in self.rows
        ]


@dataclass(frozen=True)
class FileStat:
    """Per-file statistics of a directory run."""
    file_name: str
    status: str  # success/failed
    inserted_rows: int
    updated_rows: int
    skipped_rows: int
    elapsed_seconds: float
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated result of importing every spreadsheet in the source directory."""
    success_files: int
    failed_files: int
    inserted_rows: int
    updated_rows: int
    skipped_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
