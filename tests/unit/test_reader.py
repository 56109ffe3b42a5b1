from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest

from price_import.excel.errors import (
    ExcelLoadError,
    InvalidFormatError,
    MissingComponentError,
    UnsupportedExtensionError,
)
from price_import.excel.reader import (
    SourceFormat,
    read_raw_rows,
    read_raw_rows_from_bytes,
    sniff_format,
)


def test_sniff_format_by_content_before_extension():
    assert sniff_format(b"PK\x03\x04rest", "html") is SourceFormat.XLSX
    assert sniff_format(b"<HTML><body><table>", "xls") is SourceFormat.HTML
    assert sniff_format(b"\xd0\xcf\x11\xe0", ".XLS") is SourceFormat.XLS


def test_sniff_format_extension_fallback_errors():
    with pytest.raises(InvalidFormatError):
        sniff_format(b"not a zip", "xlsx")
    with pytest.raises(UnsupportedExtensionError) as exc:
        sniff_format(b"a;b;c", ".csv")
    assert exc.value.extension == "csv"
    assert exc.value.error_type == "UNSUPPORTED_EXTENSION"


def test_read_xlsx_first_sheet_as_text(tmp_path: Path, xlsx_writer):
    path = xlsx_writer(tmp_path / "list.xlsx", [
        ["EAN", "Nome", "Prezzo"],
        ["8001234567890", "Widget", "9.99"],
        ["8001234567891", "Gadget", None],
    ])
    rows = read_raw_rows(path)
    assert rows[0] == ["EAN", "Nome", "Prezzo"]
    assert rows[1] == ["8001234567890", "Widget", "9.99"]
    # trailing empty cells are dropped
    assert rows[2] == ["8001234567891", "Gadget"]


def test_read_xlsx_respects_max_rows(tmp_path: Path, xlsx_writer):
    path = xlsx_writer(tmp_path / "big.xlsx", [[str(i), "x"] for i in range(10)])
    assert len(read_raw_rows(path, max_rows=3)) == 3


def test_read_rejects_oversized_file(tmp_path: Path, xlsx_writer):
    path = xlsx_writer(tmp_path / "list.xlsx", [["a", "b"]])
    with pytest.raises(InvalidFormatError, match="too large"):
        read_raw_rows(path, max_file_bytes=10)


def test_xlsx_without_workbook_part():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
    with pytest.raises(MissingComponentError) as exc:
        read_raw_rows_from_bytes(buf.getvalue(), "xlsx")
    assert exc.value.path == "xl/workbook.xml"


def test_corrupt_zip_is_invalid_format():
    with pytest.raises(InvalidFormatError):
        read_raw_rows_from_bytes(b"PK\x03\x04garbage", "xlsx")


def test_empty_file_is_invalid_format():
    with pytest.raises(InvalidFormatError):
        read_raw_rows_from_bytes(b"", "xlsx")


def test_legacy_xls_garbage_fails_to_load():
    with pytest.raises(ExcelLoadError):
        read_raw_rows_from_bytes(b"\x00\x01\x02 not a workbook", "xls")


def test_read_html_table(tmp_path: Path, html_writer):
    path = html_writer(tmp_path / "export.htm", [
        ["Barcode", "Descrizione", "Prezzo"],
        ["8001234567890", "Widget &amp; co", "9,99"],
    ])
    rows = read_raw_rows(path)
    assert rows == [["Barcode", "Descrizione", "Prezzo"], ["8001234567890", "Widget & co", "9,99"]]


def test_read_html_colspan_keeps_columns_aligned():
    html = (
        b"<table><tr><td colspan='2'>Listino</td><td>2024</td></tr>"
        b"<tr><th>EAN</th><th>Nome</th><th>Prezzo</th></tr></table>"
    )
    rows = read_raw_rows_from_bytes(html, "html")
    assert rows[0] == ["Listino", "", "2024"]
    assert rows[1] == ["EAN", "Nome", "Prezzo"]


def test_read_html_rowspan_repeats_cell_in_rows_below():
    html = (
        b"<table><tr><th>Fornitore</th><th>EAN</th><th>Prezzo</th></tr>"
        b"<tr><td rowspan='2'>Rossi Srl</td><td>8001234567890</td><td>4,99</td></tr>"
        b"<tr><td>8009876543210</td><td>12,50</td></tr>"
        b"<tr><td>Bianchi</td><td>8005550001112</td><td>3,10</td></tr></table>"
    )
    rows = read_raw_rows_from_bytes(html, "html")
    assert rows[1] == ["Rossi Srl", "8001234567890", "4,99"]
    assert rows[2] == ["Rossi Srl", "8009876543210", "12,50"]
    assert rows[3] == ["Bianchi", "8005550001112", "3,10"]


def test_read_html_rowspan_in_last_column():
    html = (
        b"<table><tr><td>A</td><td rowspan='2'>X</td></tr>"
        b"<tr><td>B</td></tr></table>"
    )
    assert read_raw_rows_from_bytes(html, "html") == [["A", "X"], ["B", "X"]]


def test_html_saved_as_xls_is_read_as_html():
    html = b"<html><table><tr><td>EAN</td></tr><tr><td>8001234567890</td></tr></table></html>"
    assert read_raw_rows_from_bytes(html, "xls") == [["EAN"], ["8001234567890"]]


def test_html_without_table():
    with pytest.raises(InvalidFormatError, match="no table"):
        read_raw_rows_from_bytes(b"<html><body>nothing</body></html>", "html")
