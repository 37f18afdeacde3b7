from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .import_result import ImportSummary

"""ExcelFile processing context and FileStatus enum.

A file ends in exactly one state: success or failed.
"""


class FileStatus(Enum):
    """Status of one spreadsheet during a directory run.

    - SUCCESS: Accounts reconciled and written to the ledger
    - FAILED: Format/data/persistence failure, ledger untouched for this file
    """
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExcelFile:
    """Processing context for a single spreadsheet file."""
    path: Path
    name: str
    status: FileStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    summary: ImportSummary | None = None  # set on success
    error: str | None = None  # failure reason summary

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
