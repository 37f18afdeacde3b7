from __future__ import annotations

from pathlib import Path

import pytest

from coa_import.cli.app import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main


@pytest.fixture(autouse=True)
def _mock_mode(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    assert main(["--config", "config/missing.yml"]) == EXIT_FATAL
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_entity_required(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text("source_directory: ./data\n", encoding="utf-8")
    assert main([]) == EXIT_FATAL
    assert "ERROR entity:" in capsys.readouterr().out


def test_entity_from_flag(temp_workdir: Path, make_xlsx, coa_export_rows, capsys):
    (temp_workdir / "config" / "import.yml").write_text("source_directory: ./data\n", encoding="utf-8")
    make_xlsx(temp_workdir / "data" / "coa.xlsx", coa_export_rows)
    assert main(["--entity-id", "E7"]) == EXIT_SUCCESS_ALL
    assert "entity=E7" in capsys.readouterr().out


def test_missing_directory_is_fatal(write_config: Path, temp_workdir: Path, capsys):
    (temp_workdir / "data").rmdir()
    assert main([]) == EXIT_FATAL
    assert "ERROR directory not found" in capsys.readouterr().out


def test_success_prints_summary(write_config: Path, temp_workdir: Path, make_xlsx, coa_export_rows, capsys):
    make_xlsx(temp_workdir / "data" / "coa.xlsx", coa_export_rows)
    assert main([]) == EXIT_SUCCESS_ALL
    out = capsys.readouterr().out
    assert "INFO mode=mock inserted=3 updated=0" in out
    summary = [line for line in out.splitlines() if line.startswith("SUMMARY ")]
    assert len(summary) == 1
    assert "files=1/1 success=1 failed=0 inserted=3 updated=0 skipped_rows=1" in summary[0]


def test_partial_failure_exit_code(write_config: Path, temp_workdir: Path, make_xlsx, coa_export_rows, capsys):
    make_xlsx(temp_workdir / "data" / "a_coa.xlsx", coa_export_rows)
    make_xlsx(temp_workdir / "data" / "b_other.xlsx", [["Description", "Amount"], ["Sewa", 10]])
    assert main([]) == EXIT_PARTIAL_FAILURE
    out = capsys.readouterr().out
    assert "ERROR file=b_other.xlsx FORMAT_UNRECOGNIZED" in out
    assert "success=1 failed=1" in out


def test_debug_flag(write_config: Path, capsys):
    assert main(["--debug"]) == EXIT_SUCCESS_ALL
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_inspect_data(write_config: Path, temp_workdir: Path, make_xlsx, coa_export_rows, capsys):
    make_xlsx(temp_workdir / "data" / "coa.xlsx", coa_export_rows)
    assert main(["--inspect-data"]) == EXIT_SUCCESS_ALL
    out = capsys.readouterr().out
    assert "FILE: coa.xlsx" in out
    assert "SHEET: COA format=standard header_row=3" in out
    assert "'account_code': '1-1100'" in out
    assert "SUMMARY" not in out
    assert not list((temp_workdir / "logs").glob("errors-*.log"))
