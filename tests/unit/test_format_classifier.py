from __future__ import annotations

import pytest

from coa_import.services.format_classifier import (
    SheetFormat,
    classify_columns,
    classify_format,
    is_account_code_column,
    is_account_name_column,
)


@pytest.mark.parametrize(
    "columns",
    [
        ["Account No", "Account Name", "Balance"],
        ["Kode Akun", "Nama Akun"],
        ["no", "uraian"],
        ["Account Code", "account"],
        ["Nomor", "Keterangan"],
    ],
)
def test_standard_formats(columns):
    assert classify_columns(columns) is SheetFormat.STANDARD


@pytest.mark.parametrize(
    "columns",
    [
        ["Description", "Amount"],
        ["Account No", "Balance"],
        ["Nama Akun", "Saldo"],
        [],
    ],
)
def test_unknown_formats(columns):
    assert classify_columns(columns) is SheetFormat.UNKNOWN


def test_column_predicates():
    assert is_account_code_column(" Account Number ")
    assert is_account_code_column("KODE")
    assert not is_account_code_column("Account Name")
    assert is_account_name_column("Account Name")
    assert is_account_name_column("Uraian Akun")
    assert not is_account_name_column("Saldo")


def test_classify_format_uses_row_keys():
    row = {"Account No": "1-1100", "Account Name": "Kas"}
    assert classify_format(row) is SheetFormat.STANDARD
    assert classify_format({"Tanggal": "2024-01-01"}) is SheetFormat.UNKNOWN
