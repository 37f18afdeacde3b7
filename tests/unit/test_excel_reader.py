from __future__ import annotations

from datetime import datetime

import pandas as pd

from coa_import.excel.reader import locate_header, normalize_sheet, read_excel_file


def test_locate_header_skips_title_rows():
    grid = [
        ["PT Sinar Jaya", None],
        ["Daftar Akun 2024", None],
        ["Account No", "Account Name"],
        ["1-1100", "Kas"],
    ]
    assert locate_header(grid) == 2


def test_locate_header_defaults_to_first_row():
    grid = [["Kode", "Uraian"], ["1-1100", "Kas"]]
    assert locate_header(grid) == 0


def test_locate_header_respects_scan_limit():
    grid = [["title"]] * 25 + [["Account No", "Account Name"]]
    assert locate_header(grid) == 0
    assert locate_header(grid, max_scan=30) == 25


def test_locate_header_custom_keywords():
    grid = [["Laporan"], ["Kode Akun", "Nama Akun"], ["1-1100", "Kas"]]
    assert locate_header(grid) == 0
    assert locate_header(grid, anchors=("akun",), markers=("kode",)) == 1


def test_locate_header_ignores_empty_rows():
    grid = [[], ["Account Code", "Account Name"]]
    assert locate_header(grid) == 1


def test_normalize_sheet_keys_rows_by_header():
    grid = [
        ["Report"],
        ["Account No", "Account Name", "Balance"],
        ["1-1100", "Kas", 100],
        [None, None, None],
        ["  ", "", None],
        ["2-1000", "Hutang"],
    ]
    sheet = normalize_sheet(grid, "COA", header_index=1)
    assert sheet.columns == ["Account No", "Account Name", "Balance"]
    assert [r.row_number for r in sheet.rows] == [3, 6]
    assert sheet.rows[0].values == {"Account No": "1-1100", "Account Name": "Kas", "Balance": 100}
    # short rows are padded with empty cells
    assert sheet.rows[1].values["Balance"] is None


def test_normalize_sheet_names_blank_and_duplicate_headers():
    grid = [["Code", None, "Code", " Name "], ["1", "x", "2", "Kas"]]
    sheet = normalize_sheet(grid, "S")
    assert sheet.columns == ["Code", "column_2", "Code_1", "Name"]


def test_normalize_sheet_null_sentinels():
    grid = [["Code", "Name", "Currency"], ["1-1100", "Kas", " n/a "]]
    sheet = normalize_sheet(grid, "S", null_sentinels={"N/A"})
    assert sheet.rows[0].values["Currency"] is None


def test_normalize_sheet_header_out_of_range():
    sheet = normalize_sheet([], "Empty", header_index=0)
    assert sheet.columns == []
    assert sheet.rows == []


def test_read_excel_file_decodes_cells(tmp_path, make_xlsx):
    path = make_xlsx(
        tmp_path / "coa.xlsx",
        [
            ["Account No", "Account Name", "Balance", "Posted"],
            ["1-1100", "Kas", 1500, datetime(2024, 12, 31)],
            ["1-1200", None, None, None],
        ],
    )
    grids = read_excel_file(path)
    assert list(grids) == ["COA"]
    grid = grids["COA"]
    assert grid[0] == ["Account No", "Account Name", "Balance", "Posted"]
    assert grid[1][0] == "1-1100"
    assert grid[1][2] == 1500
    assert grid[1][3] == datetime(2024, 12, 31)
    assert grid[2][1] is None


def test_read_excel_file_target_sheets(tmp_path):
    path = tmp_path / "multi.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([["a"]]).to_excel(writer, sheet_name="First", header=False, index=False)
        pd.DataFrame([["b"]]).to_excel(writer, sheet_name="Second", header=False, index=False)

    assert list(read_excel_file(path)) == ["First", "Second"]
    assert list(read_excel_file(path, target_sheets=["Second"])) == ["Second"]


def test_read_excel_file_keep_na_strings(tmp_path, make_xlsx):
    path = make_xlsx(tmp_path / "na.xlsx", [["Code", "Name"], ["NA", "North America"]])
    assert read_excel_file(path)["COA"][1][0] is None
    assert read_excel_file(path, keep_na_strings=["NA"])["COA"][1][0] == "NA"
