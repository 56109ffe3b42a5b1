from __future__ import annotations

from pathlib import Path

from price_import.cli import main as cli_main

"""Exit code contract: 0 all files analyzed, 2 some file failed, 1 fatal."""

GOOD_ROWS = [
    ["EAN", "Descrizione", "Qta", "Prezzo"],
    ["8001234567890", "Widget blu", "2", "4,99"],
]


def test_exit_code_fatal_without_config(temp_workdir: Path, capsys):
    code = cli_main([])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_invalid_config(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text("source_directory: ./data\nbogus: 1\n", encoding="utf-8")
    code = cli_main([])
    assert code == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_exit_code_all_success(write_config, temp_workdir: Path, xlsx_factory, capsys):
    xlsx_factory("a.xlsx", GOOD_ROWS)
    xlsx_factory("b.xlsx", GOOD_ROWS)
    code = cli_main([])
    assert code == 0
    assert "SUMMARY files=2/2 success=2 failed=0" in capsys.readouterr().out


def test_exit_code_partial_failure(write_config, temp_workdir: Path, xlsx_factory, capsys):
    xlsx_factory("a.xlsx", GOOD_ROWS)
    (temp_workdir / "data" / "b.xlsx").write_bytes(b"")
    code = cli_main([])
    assert code == 2
    assert "SUMMARY files=2/2 success=1 failed=1" in capsys.readouterr().out


def test_exit_code_all_failed(write_config, temp_workdir: Path, capsys):
    (temp_workdir / "data" / "b.xlsx").write_bytes(b"")
    assert cli_main([]) == 2


def test_exit_code_merge_incompatible(write_config, temp_workdir: Path, xlsx_factory, capsys):
    xlsx_factory("a.xlsx", GOOD_ROWS)
    xlsx_factory("b.xlsx", [["EAN", "Taglia"], ["8001234567890", "M"]])
    code = cli_main(["--merge"])
    out = capsys.readouterr().out
    assert code == 2
    assert "error_type=INCOMPATIBLE_HEADER" in out
