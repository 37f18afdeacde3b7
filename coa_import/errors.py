from __future__ import annotations

"""Failure taxonomy for the COA import pipeline.

Every failure carries an UPPER_SNAKE ``error_type`` that is written verbatim
into the JSON Lines error log. Number parsing and column resolution never raise;
data quality problems surface here instead.
"""

__all__ = [
    "CoaImportError",
    "FormatUnrecognizedError",
    "EmptySourceError",
    "NoValidRowsError",
    "PersistenceError",
]


class CoaImportError(Exception):
    """Base class for import failures reported back to the caller."""

    error_type = "IMPORT_ERROR"


class FormatUnrecognizedError(CoaImportError):
    """Detected columns do not contain an account code and an account name."""

    error_type = "FORMAT_UNRECOGNIZED"

    def __init__(self, columns: list[str]) -> None:
        self.columns = columns
        super().__init__(
            "spreadsheet format not recognized: make sure the sheet has an account code "
            f"column (Account No / Kode Akun) and an account name column (Account Name / Nama Akun); "
            f"found columns {columns}"
        )


class EmptySourceError(CoaImportError):
    """No data rows below the detected header row."""

    error_type = "EMPTY_SOURCE"


class NoValidRowsError(CoaImportError):
    """Schema was fine but every row was rejected by the row transformer."""

    error_type = "NO_VALID_ROWS"

    def __init__(self, skipped_rows: int) -> None:
        self.skipped_rows = skipped_rows
        super().__init__(f"no valid account rows found ({skipped_rows} rows skipped)")


class PersistenceError(CoaImportError):
    """The ledger upsert failed; the whole batch counts as failed."""

    error_type = "PERSISTENCE_FAILURE"
