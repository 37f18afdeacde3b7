from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ImportConfig
from ..db.ledger_store import LedgerGateway
from ..errors import (
    CoaImportError,
    EmptySourceError,
    FormatUnrecognizedError,
    NoValidRowsError,
)
from ..excel.reader import (
    DEFAULT_HEADER_SCAN_ROWS,
    HEADER_ANCHORS,
    HEADER_MARKERS,
    SheetData,
    locate_header,
    normalize_sheet,
    read_excel_file,
)
from ..logging.error_log import ErrorLogBuffer
from ..models.account import DEFAULT_CURRENCY
from ..models.error_record import ErrorRecord
from ..models.excel_file import ExcelFile, FileStatus
from ..models.import_result import FileStat, ImportPreview, ImportSummary, ProcessingResult
from ..models.row_data import CellValue
from .format_classifier import SheetFormat, classify_format
from .progress import ProgressTracker
from .reconciliation import reconcile
from .row_transformer import SKIP_KEYWORDS, transform_rows

"""Import pipeline orchestration.

One spreadsheet is one batch, processed synchronously:

    locate header -> normalize rows -> classify format -> transform rows
    -> fetch existing ledger -> reconcile -> upsert (single write)

Nothing touches the ledger before the final upsert, so any failure before it
leaves the ledger unchanged. ``process_all`` runs this for every workbook in
the configured directory; one failing file does not stop the others.
"""

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm"})
# workbooks pandas can only read with extra engines (xlrd, pyxlsb)
UNSUPPORTED_WORKBOOK_SUFFIXES = frozenset({".xls", ".xlsb"})
DEFAULT_SHEET_NAME = "Sheet1"


class ProcessingError(Exception):
    """Fatal error that prevents a directory run from starting."""
    pass


@dataclass(frozen=True)
class ImportOptions:
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS
    header_anchors: tuple[str, ...] = HEADER_ANCHORS
    header_markers: tuple[str, ...] = HEADER_MARKERS
    skip_keywords: tuple[str, ...] = SKIP_KEYWORDS
    default_currency: str = DEFAULT_CURRENCY
    null_sentinels: frozenset[str] | None = None
    preview_rows: int = 5

    @classmethod
    def from_config(cls, config: ImportConfig) -> ImportOptions:
        return cls(
            header_scan_rows=config.header_scan_rows,
            header_anchors=config.header_anchors,
            header_markers=config.header_markers,
            skip_keywords=config.skip_keywords,
            default_currency=config.default_currency,
            null_sentinels=config.null_sentinels,
            preview_rows=config.preview_rows,
        )


def _normalize(grid: Sequence[Sequence[CellValue]], sheet_name: str, options: ImportOptions) -> SheetData:
    header_index = locate_header(
        grid,
        max_scan=options.header_scan_rows,
        anchors=options.header_anchors,
        markers=options.header_markers,
    )
    return normalize_sheet(grid, sheet_name, header_index, null_sentinels=set(options.null_sentinels or ()))


def _require_entity(entity_id: str) -> None:
    if not entity_id or not str(entity_id).strip():
        raise ValueError("entity_id is required")


def preview_import(
    grid: Sequence[Sequence[CellValue]],
    entity_id: str,
    options: ImportOptions | None = None,
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> ImportPreview:
    """First ``options.preview_rows`` transformed accounts, without any ledger access."""
    _require_entity(entity_id)
    options = options or ImportOptions()
    sheet = _normalize(grid, sheet_name, options)
    if not sheet.rows:
        return ImportPreview(format=SheetFormat.UNKNOWN.value, header_row=sheet.header_row, columns=sheet.columns, rows=[])

    fmt = classify_format(sheet.rows[0].values)
    if fmt is SheetFormat.UNKNOWN:
        return ImportPreview(format=fmt.value, header_row=sheet.header_row, columns=sheet.columns, rows=[])

    outcome = transform_rows(
        sheet.rows, entity_id, default_currency=options.default_currency, skip_keywords=options.skip_keywords
    )
    return ImportPreview(
        format=fmt.value,
        header_row=sheet.header_row,
        columns=sheet.columns,
        rows=outcome.accounts[: options.preview_rows],
    )


def import_accounts(
    grid: Sequence[Sequence[CellValue]],
    entity_id: str,
    ledger: LedgerGateway,
    options: ImportOptions | None = None,
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> ImportSummary:
    """Import one decoded sheet for ``entity_id`` into ``ledger``.

    Raises:
        EmptySourceError: no data rows below the detected header
        FormatUnrecognizedError: no account code / account name column
        NoValidRowsError: every row rejected (blank keys or summary rows)
        PersistenceError: raised by the ledger gateway, propagated unchanged
    """
    _require_entity(entity_id)
    options = options or ImportOptions()

    sheet = _normalize(grid, sheet_name, options)
    if not sheet.rows:
        raise EmptySourceError(f"sheet '{sheet_name}' has no data rows")

    if classify_format(sheet.rows[0].values) is SheetFormat.UNKNOWN:
        raise FormatUnrecognizedError(sheet.columns)

    outcome = transform_rows(
        sheet.rows, entity_id, default_currency=options.default_currency, skip_keywords=options.skip_keywords
    )
    for skipped in outcome.skipped:
        logger.debug("sheet=%s row=%d skipped", sheet_name, skipped.row_number)
    if not outcome.accounts:
        raise NoValidRowsError(outcome.skipped_count)

    codes = list(dict.fromkeys(a.account_code for a in outcome.accounts))
    existing = ledger.fetch_existing([entity_id], codes)
    result = reconcile(outcome.accounts, existing)

    written = ledger.upsert(result.records)
    expected = len({r.storage_key for r in result.records})
    if written != expected:
        logger.warning(
            "sheet=%s ledger reported written=%d, expected=%d", sheet_name, written, expected
        )

    logger.info(
        "entity=%s sheet=%s header_row=%d inserted=%d updated=%d skipped_rows=%d",
        entity_id,
        sheet_name,
        sheet.header_row + 1,
        result.inserted_count,
        result.updated_count,
        outcome.skipped_count,
    )
    return ImportSummary(
        inserted_count=result.inserted_count,
        updated_count=result.updated_count,
        total_count=result.inserted_count + result.updated_count,
        skipped_rows=outcome.skipped_count,
        header_row=sheet.header_row,
    )


def read_first_sheet(path: Path, keep_na_strings: Sequence[str] | None = None) -> tuple[str, list[list[CellValue]]]:
    """Decode the first worksheet of ``path`` (exports carry the COA on the first sheet)."""
    grids = read_excel_file(path, keep_na_strings=list(keep_na_strings) if keep_na_strings else None)
    if not grids:
        raise EmptySourceError(f"workbook '{path.name}' has no sheets")
    sheet_name = next(iter(grids))
    return sheet_name, grids[sheet_name]


def scan_excel_files(directory: Path) -> list[Path]:
    """Workbooks directly inside ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        entries = sorted(p for p in directory.iterdir() if p.is_file() and not p.name.startswith("~$"))
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e

    files: list[Path] = []
    for p in entries:
        suffix = p.suffix.lower()
        if suffix in EXCEL_SUFFIXES:
            files.append(p)
        elif suffix in UNSUPPORTED_WORKBOOK_SUFFIXES:
            logger.info(f"skipped {p.name}: {suffix} workbooks are not supported, save as .xlsx")
    return files


def _process_single_file(
    file_path: Path,
    entity_id: str,
    ledger: LedgerGateway,
    options: ImportOptions,
    keep_na_strings: Sequence[str] | None,
    error_log: ErrorLogBuffer,
) -> ExcelFile:
    start_time = datetime.now(UTC)
    sheet_name = "<FILE_LEVEL>"
    try:
        sheet_name, grid = read_first_sheet(file_path, keep_na_strings)
        summary = import_accounts(grid, entity_id, ledger, options, sheet_name=sheet_name)
    except CoaImportError as e:
        error_type, message = e.error_type, str(e)
    except Exception as e:
        # unreadable workbook and the like: recorded, the run continues
        logger.debug("unexpected failure file=%s", file_path.name, exc_info=True)
        error_type, message = "UNEXPECTED_ERROR", f"{type(e).__name__}: {e}"
    else:
        return ExcelFile(
            path=file_path,
            name=file_path.name,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.SUCCESS,
            summary=summary,
        )

    logger.error(f"file={file_path.name} {error_type}: {message}")
    error_log.append(
        ErrorRecord.create(file=file_path.name, sheet=sheet_name, row=-1, error_type=error_type, message=message)
    )
    return ExcelFile(
        path=file_path,
        name=file_path.name,
        start_time=start_time,
        end_time=datetime.now(UTC),
        status=FileStatus.FAILED,
        error=message,
    )


def process_all(config: ImportConfig, ledger: LedgerGateway, entity_id: str | None = None) -> ProcessingResult:
    """Import every workbook in ``config.source_directory`` for one entity.

    Raises:
        ProcessingError: no entity id, or the directory cannot be scanned
    """
    start_time = datetime.now(UTC)
    entity = entity_id or config.entity_id
    if not entity:
        raise ProcessingError("entity_id is required (--entity-id or entity_id in config)")

    options = ImportOptions.from_config(config)
    file_paths = scan_excel_files(Path(config.source_directory))
    error_log = ErrorLogBuffer()

    file_stats: list[FileStat] = []
    success_count = failed_count = 0
    inserted = updated = skipped = 0

    with ProgressTracker(len(file_paths), description="Importing COA") as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            result = _process_single_file(
                file_path, entity, ledger, options, config.keep_na_strings, error_log
            )
            summary = result.summary
            if result.status is FileStatus.SUCCESS and summary is not None:
                success_count += 1
                inserted += summary.inserted_count
                updated += summary.updated_count
                skipped += summary.skipped_rows
            else:
                failed_count += 1

            progress.set_postfix(success=success_count, failed=failed_count, inserted=inserted, updated=updated)
            progress.finish_file(success=result.status is FileStatus.SUCCESS)

            file_stats.append(
                FileStat(
                    file_name=result.name,
                    status=result.status.value,
                    inserted_rows=summary.inserted_count if summary else 0,
                    updated_rows=summary.updated_count if summary else 0,
                    skipped_rows=summary.skipped_rows if summary else 0,
                    elapsed_seconds=result.elapsed_seconds,
                    error=result.error,
                )
            )

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed writing error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        inserted_rows=inserted,
        updated_rows=updated,
        skipped_rows=skipped,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )
