from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..db.ledger_store import PostgresLedger
from ..db.memory_ledger import InMemoryLedger
from ..logging.init import log_summary, set_debug, setup_logging
from ..services.orchestrator import (
    ImportOptions,
    ProcessingError,
    preview_import,
    process_all,
    read_first_sheet,
    scan_excel_files,
)
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load .env, then the YAML config
- resolve the entity (--entity-id overrides entity_id in config)
- connect to PostgreSQL, or fall back to an in-memory ledger (mock mode)
- import every workbook in source_directory and print the SUMMARY line
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper; tested via integration)
    """Yield a psycopg2 cursor.

    Connection settings, highest priority first:
        1. DATABASE_URL / PGDSN (full DSN), including values loaded from .env
        2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the database section of the config file
    """
    import psycopg2

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    conn.autocommit = False  # PostgresLedger issues BEGIN/COMMIT around each upsert
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; override=True lets .env win over already exported variables."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="coa-import", description="Chart-of-accounts spreadsheet importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--entity-id", help="Entity owning the imported accounts (overrides config)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print detected format and the first transformed accounts per file, then exit",
    )
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig, entity_id: str) -> int:
    try:
        files = scan_excel_files(Path(cfg.source_directory))
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no spreadsheet files")
        return EXIT_SUCCESS_ALL

    options = ImportOptions.from_config(cfg)
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sheet_name, grid = read_first_sheet(f, cfg.keep_na_strings)
        except Exception as e:
            print(f"  read_error: {e}")
            continue
        preview = preview_import(grid, entity_id, options, sheet_name=sheet_name)
        print(
            f"  SHEET: {sheet_name} format={preview.format} header_row={preview.header_row + 1} "
            f"cols={preview.columns}"
        )
        for row in preview.as_dicts():
            print(f"    {row}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None -> read sys.argv; an explicit [] must not pick up pytest's own arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    entity_id = args.entity_id or cfg.entity_id
    if not entity_id:
        logger.error("entity: --entity-id is required when the config has no entity_id")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.is_dir():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    logger.info(f"Importing chart of accounts for entity={entity_id} from: {directory}")

    if args.inspect_data:
        return _inspect_data(cfg, entity_id)

    # DISABLE_DB_CONNECT=1 forces mock mode (tests, dry runs)
    db_mode = "mock"
    try:
        if os.getenv("DISABLE_DB_CONNECT") == "1":
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
            result = process_all(cfg, InMemoryLedger(), entity_id)
        else:
            try:
                with _db_connection(cfg) as cur:
                    db_mode = "live"
                    result = process_all(cfg, PostgresLedger(cur, cfg.ledger_table, cfg.page_size), entity_id)
            except ProcessingError:
                raise
            except Exception as db_e:
                if db_mode == "live":
                    raise
                logger.info(f"DB connection failed -> fallback to mock mode: {db_e}")
                result = process_all(cfg, InMemoryLedger(), entity_id)
    except ProcessingError as e:
        logger.error(f"processing({db_mode}): {e}")
        return EXIT_FATAL

    logger.info(f"mode={db_mode} inserted={result.inserted_rows} updated={result.updated_rows}")

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL

