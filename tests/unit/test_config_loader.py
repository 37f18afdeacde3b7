from __future__ import annotations

from pathlib import Path

import pytest

from coa_import.config.loader import ConfigError, load_config
from coa_import.excel.reader import DEFAULT_HEADER_SCAN_ROWS
from coa_import.services.row_transformer import SKIP_KEYWORDS


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "import.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.entity_id == "E1"
    assert cfg.ledger_table == "coa_accounts"
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.database.dsn is None
    assert cfg.header_scan_rows == DEFAULT_HEADER_SCAN_ROWS
    assert cfg.skip_keywords == SKIP_KEYWORDS
    assert cfg.default_currency == "IDR"
    assert cfg.preview_rows == 5
    assert cfg.null_sentinels is None
    assert cfg.keep_na_strings is None


def test_minimal_config_uses_defaults(tmp_path: Path):
    cfg = load_config(_write(tmp_path, "source_directory: ./in\n"))
    assert cfg.entity_id is None
    assert cfg.database.host is None
    assert cfg.page_size == 1000


def test_keyword_lists_extend_defaults(tmp_path: Path):
    cfg = load_config(
        _write(
            tmp_path,
            """source_directory: ./in
skip_keywords: [Jumlah, total]
header_detection:
  anchors: [Akun]
  markers: [kode]
null_sentinels: [" n/a ", "-"]
keep_na_strings: [NA]
default_currency: usd
""",
        )
    )
    assert cfg.skip_keywords == (*SKIP_KEYWORDS, "jumlah")
    assert cfg.header_anchors == ("account", "akun")
    assert cfg.header_markers == ("no", "name", "code", "kode")
    assert cfg.null_sentinels == frozenset({"N/A", "-"})
    assert cfg.keep_na_strings == ("NA",)
    assert cfg.default_currency == "USD"


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(tmp_path / "nope.yml")


def test_invalid_yaml(tmp_path: Path):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(_write(tmp_path, "source_directory: [unclosed\n"))


def test_root_must_be_mapping(tmp_path: Path):
    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(tmp_path, "- a\n- b\n"))


def test_missing_required_key(tmp_path: Path):
    with pytest.raises(ConfigError, match="source_directory"):
        load_config(_write(tmp_path, "entity_id: E1\n"))


def test_unknown_key_rejected(tmp_path: Path):
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(_write(tmp_path, "source_directory: ./in\nsheets: [COA]\n"))


@pytest.mark.parametrize(
    "extra",
    [
        "ledger_table: 'coa; drop table x'",
        "header_scan_rows: 0",
        "preview_rows: many",
        "database: {port: '5432'}",
    ],
)
def test_invalid_values_rejected(tmp_path: Path, extra: str):
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(_write(tmp_path, f"source_directory: ./in\n{extra}\n"))
