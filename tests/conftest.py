# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pandas as pd
import pytest

from price_import.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("PRICE_IMPORT_CONFIG", raising=False)
        reset_logging()
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
file_extensions: [xlsx, xls, html, htm]
max_rows: 50000
preview_rows: 5
low_confidence_threshold: 0.5
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def write_xlsx(path: Path, rows: list[list[object]]) -> Path:
    """Write ``rows`` as the first sheet of a real workbook (no pandas header)."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Listino", header=False, index=False)
    return path


def write_html(path: Path, rows: list[list[str]]) -> Path:
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows
    )
    path.write_text(f"<html><body><table>{body}</table></body></html>", encoding="utf-8")
    return path


# Italian supplier list with a title row, summary row and all essential roles.
PRICE_LIST_ROWS: list[list[object]] = [
    ["Listino prezzi fornitore Rossi", "", "", "", ""],
    ["Codice a barre", "Descrizione", "Fornitore", "Q.tà", "Prezzo"],
    ["8001234567890", "Widget blu", "Rossi Srl", "10", "4,99"],
    ["8009876543210", "Gadget rosso", "Rossi Srl", "5", "12,50"],
    ["8005550001112", "Cavo USB 2m", "Rossi Srl", "20", "3,10"],
    ["", "Totale", "", "35", "20,59"],
]


@pytest.fixture()
def price_list_rows() -> list[list[object]]:
    return [list(r) for r in PRICE_LIST_ROWS]


@pytest.fixture()
def xlsx_factory(temp_workdir: Path):
    def _make(name: str, rows: list[list[object]], directory: Path | None = None) -> Path:
        target = (directory or temp_workdir / "data") / name
        return write_xlsx(target, rows)
    return _make


@pytest.fixture()
def xlsx_writer():
    return write_xlsx


@pytest.fixture()
def html_writer():
    return write_html
