"""Chart-of-accounts spreadsheet import and ledger reconciliation."""

__version__ = "0.3.0"
