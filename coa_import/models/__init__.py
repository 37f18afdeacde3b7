"""Domain models for the chart-of-accounts import engine."""

from .account import Account, AccountType
from .error_record import ErrorRecord
from .excel_file import ExcelFile, FileStatus
from .import_result import FileStat, ImportPreview, ImportSummary, ProcessingResult, ReconcileResult
from .row_data import CellValue, RawRow, RowData

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    # Spreadsheet models
    "CellValue",
    "RawRow",
    "RowData",
    "ExcelFile",
    "FileStatus",
    # Results
    "ReconcileResult",
    "ImportSummary",
    "ImportPreview",
    "FileStat",
    "ProcessingResult",
    "ErrorRecord",
]
