from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

from coa_import.cli.app import main

"""Error log contract: JSON Lines, fixed key set, row=-1 for file-level failures."""

EXPECTED_KEYS = {"timestamp", "file", "sheet", "row", "error_type", "message"}
ERROR_TYPES = {"FORMAT_UNRECOGNIZED", "EMPTY_SOURCE", "NO_VALID_ROWS", "PERSISTENCE_FAILURE", "UNEXPECTED_ERROR"}


@pytest.fixture(autouse=True)
def _mock_mode(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def test_error_log_records(write_config: Path, temp_workdir: Path, make_xlsx):
    make_xlsx(temp_workdir / "data" / "journal.xlsx", [["Tanggal", "Debit"], ["2024-01-01", 5]], sheet_name="Jurnal")
    (temp_workdir / "data" / "corrupt.xlsx").write_bytes(b"\x00\x01")

    main([])

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert re.match(r"^errors-\d{8}-\d{6}\.log$", logs[0].name)

    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert len(records) == 2
    for rec in records:
        assert set(rec) == EXPECTED_KEYS
        assert rec["row"] == -1
        assert rec["error_type"] in ERROR_TYPES
        assert rec["timestamp"].endswith("Z")
        assert rec["message"]

    by_file = {r["file"]: r for r in records}
    assert by_file["journal.xlsx"]["sheet"] == "Jurnal"
    assert by_file["journal.xlsx"]["error_type"] == "FORMAT_UNRECOGNIZED"
    assert by_file["corrupt.xlsx"]["sheet"] == "<FILE_LEVEL>"
