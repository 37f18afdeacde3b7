# Shared pytest fixtures
from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from coa_import.logging.init import APP_LOGGER_NAME, reset_logging
from coa_import.models.account import Account, AccountType


@pytest.fixture(autouse=True)
def _reset_app_logger():
    yield
    # handlers hold the stdout captured for the finished test
    reset_logging()
    logging.getLogger(APP_LOGGER_NAME).handlers.clear()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
entity_id: E1
ledger_table: coa_accounts
default_currency: IDR
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: budgetdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_xlsx() -> Callable[..., Path]:
    """Write ``rows`` (header rows included) to a single-sheet workbook."""
    def _make(path: Path, rows: list[list[object]], sheet_name: str = "COA") -> Path:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path
    return _make


@pytest.fixture()
def coa_export_rows() -> list[list[object]]:
    """Chart of accounts laid out like an accounting package export: title lines above the table."""
    return [
        ["PT Sinar Jaya", None, None, None],
        ["Daftar Akun per 31 Desember 2024", None, None, None],
        ["Account No", "Account Name", "Balance", "Ending Balance"],
        ["1-1100", "Kas & Bank", "1.000.000", "5.000.000"],
        ["2-1000", "Hutang Usaha", "0", "2.500.000,50"],
        ["4-1000", "Pendapatan Jasa", None, "12,750,000.00"],
        ["", "Total", None, "20.250.000,50"],
    ]


def make_account(code: str = "1-1100", **overrides) -> Account:
    values = {
        "entity_id": "E1",
        "account_code": code,
        "account_name": "Kas & Bank",
        "account_type": AccountType.ASSET,
        "external_id": f"excel:E1:{code}:1700000000000:abc",
        "balance": Decimal("0"),
    }
    values.update(overrides)
    return Account(**values)
