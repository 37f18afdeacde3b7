from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..db.ledger_store import DEFAULT_LEDGER_TABLE
from ..excel.reader import DEFAULT_HEADER_SCAN_ROWS, HEADER_ANCHORS, HEADER_MARKERS
from ..models.account import DEFAULT_CURRENCY
from ..services.row_transformer import SKIP_KEYWORDS

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for everything except source_directory
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")
DEFAULT_PREVIEW_ROWS = 5


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class ImportConfig:
    source_directory: str
    database: DatabaseConfig
    entity_id: str | None = None
    ledger_table: str = DEFAULT_LEDGER_TABLE
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS
    header_anchors: tuple[str, ...] = HEADER_ANCHORS
    header_markers: tuple[str, ...] = HEADER_MARKERS
    skip_keywords: tuple[str, ...] = SKIP_KEYWORDS
    default_currency: str = DEFAULT_CURRENCY
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    page_size: int = 1000
    null_sentinels: frozenset[str] | None = None  # upper-cased
    keep_na_strings: tuple[str, ...] | None = None


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the config violates it
            (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    detection = data.get("header_detection") or {}
    # configured keywords extend the built-in sets, never replace them
    skip = tuple(dict.fromkeys([*SKIP_KEYWORDS, *(k.lower() for k in data.get("skip_keywords", []))]))
    anchors = tuple(dict.fromkeys([*HEADER_ANCHORS, *(a.lower() for a in detection.get("anchors", []))]))
    markers = tuple(dict.fromkeys([*HEADER_MARKERS, *(m.lower() for m in detection.get("markers", []))]))
    sentinels = data.get("null_sentinels")
    keep_na = data.get("keep_na_strings")

    return ImportConfig(
        source_directory=data["source_directory"],
        database=db,
        entity_id=data.get("entity_id"),
        ledger_table=data.get("ledger_table", DEFAULT_LEDGER_TABLE),
        header_scan_rows=data.get("header_scan_rows", DEFAULT_HEADER_SCAN_ROWS),
        header_anchors=anchors,
        header_markers=markers,
        skip_keywords=skip,
        default_currency=str(data.get("default_currency", DEFAULT_CURRENCY)).upper(),
        preview_rows=data.get("preview_rows", DEFAULT_PREVIEW_ROWS),
        page_size=data.get("page_size", 1000),
        null_sentinels=frozenset(s.strip().upper() for s in sentinels) if sentinels else None,
        keep_na_strings=tuple(keep_na) if keep_na else None,
    )
