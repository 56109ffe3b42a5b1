from __future__ import annotations

import io
import logging
import zipfile
from enum import Enum
from pathlib import Path

import pandas as pd

from .errors import (
    InvalidFormatError,
    MissingComponentError,
    MissingOptionalSupportError,
    UnsupportedExtensionError,
)

"""Raw row extraction from supplier files.

The source format is chosen by sniffing the content, not the name:

- ZIP magic ``50 4B 03 04`` -> modern workbook (pandas + openpyxl)
- ``<html`` / ``<table`` / Office HTML markers -> HTML table export (BeautifulSoup)
- otherwise the extension decides: ``.xls`` -> legacy workbook (pandas + xlrd)

Only the first worksheet (or the first table holding rows) is read. Every
cell comes back as trimmed text and trailing empty cells are dropped from
each row.
"""

__all__ = [
    "SourceFormat",
    "DEFAULT_MAX_ROWS",
    "DEFAULT_MAX_FILE_BYTES",
    "sniff_format",
    "read_raw_rows",
    "read_raw_rows_from_bytes",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 50_000
DEFAULT_MAX_FILE_BYTES = 50 * 1024 * 1024

ZIP_MAGIC = b"PK\x03\x04"
SNIFF_BYTES = 2048
HTML_MARKERS = ("<html", "<table", "urn:schemas-microsoft-com:office")
# Parts every spreadsheet package must contain.
REQUIRED_XLSX_PARTS = ("[Content_Types].xml", "xl/workbook.xml")


class SourceFormat(Enum):
    XLSX = "xlsx"
    HTML = "html"
    XLS = "xls"


def sniff_format(head: bytes, extension: str) -> SourceFormat:
    """Decide the reader for a file from its first bytes and its extension."""
    if head.startswith(ZIP_MAGIC):
        return SourceFormat.XLSX
    text = head[:SNIFF_BYTES].decode("latin-1").lower()
    if any(marker in text for marker in HTML_MARKERS):
        return SourceFormat.HTML
    ext = extension.lower().lstrip(".")
    if ext == "xls":
        return SourceFormat.XLS
    if ext == "xlsx":
        raise InvalidFormatError("file has .xlsx extension but is not a ZIP archive")
    if ext in ("html", "htm"):
        return SourceFormat.HTML
    raise UnsupportedExtensionError(ext)


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN
        return ""
    return str(value).strip()


def _trim_trailing(cells: list[str]) -> list[str]:
    while cells and not cells[-1]:
        cells.pop()
    return cells


def _frame_to_rows(df: pd.DataFrame) -> list[list[str]]:
    return [_trim_trailing([_cell_text(v) for v in record]) for record in df.itertuples(index=False, name=None)]


def _read_workbook(data: bytes, engine: str, max_rows: int) -> list[list[str]]:
    try:
        xls = pd.ExcelFile(io.BytesIO(data), engine=engine)
    except ImportError as e:
        raise MissingOptionalSupportError(engine) from e
    except Exception as e:
        raise InvalidFormatError(f"cannot open workbook: {e}") from e
    with xls:
        if not xls.sheet_names:
            return []
        try:
            df = xls.parse(
                xls.sheet_names[0],
                header=None,
                dtype=str,
                keep_default_na=False,
                na_filter=False,
                nrows=max_rows,
            )
        except Exception as e:
            raise InvalidFormatError(f"cannot read worksheet: {e}") from e
    return _frame_to_rows(df)


def _read_xlsx(data: bytes, max_rows: int) -> list[list[str]]:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile as e:
        raise InvalidFormatError(f"corrupt ZIP archive: {e}") from e
    for part in REQUIRED_XLSX_PARTS:
        if part not in names:
            raise MissingComponentError(part)
    return _read_workbook(data, "openpyxl", max_rows)


def _decode_html(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Office HTML exports are often windows-1252
        return data.decode("cp1252", errors="replace")


def _span(cell, attribute: str) -> int:
    try:
        return max(1, int(cell.get(attribute, 1)))
    except (TypeError, ValueError):
        return 1


def _fill_pending(cells: list[str], pending: dict[int, tuple[int, str]], to_end: bool = False) -> None:
    """Copy row-spanning cells from the rows above into ``cells``.

    Fills the current position while a spanning cell covers it; with
    ``to_end`` also the trailing positions after the row's own cells.
    """
    while True:
        column = len(cells)
        if column in pending:
            left, text = pending[column]
        elif to_end and any(c > column for c in pending):
            cells.append("")
            continue
        else:
            return
        cells.append(text)
        if left > 1:
            pending[column] = (left - 1, text)
        else:
            del pending[column]


def _read_html(data: bytes, max_rows: int) -> list[list[str]]:
    try:
        from bs4 import BeautifulSoup
    except ImportError as e:
        raise MissingOptionalSupportError("beautifulsoup4") from e

    soup = BeautifulSoup(_decode_html(data), "html.parser")
    for table in soup.find_all("table"):
        trs = table.find_all("tr")
        if not trs:
            continue
        rows: list[list[str]] = []
        # column -> (rows still covered, text) for cells spanning rows below
        pending: dict[int, tuple[int, str]] = {}
        for tr in trs[:max_rows]:
            cells: list[str] = []
            for cell in tr.find_all(["td", "th"]):
                _fill_pending(cells, pending)
                text = cell.get_text(" ", strip=True)
                colspan = _span(cell, "colspan")
                rowspan = _span(cell, "rowspan")
                for offset in range(colspan):
                    if rowspan > 1:
                        pending[len(cells)] = (rowspan - 1, text if offset == 0 else "")
                    cells.append(text if offset == 0 else "")
            _fill_pending(cells, pending, to_end=True)
            rows.append(_trim_trailing(cells))
        return rows
    raise InvalidFormatError("no table found in HTML document")


def read_raw_rows_from_bytes(
    data: bytes,
    extension: str,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> list[list[str]]:
    """Extract rows of trimmed text cells from in-memory file content."""
    if not data:
        raise InvalidFormatError("empty file")
    fmt = sniff_format(data[:SNIFF_BYTES], extension)
    logger.debug("sniffed format=%s extension=%s bytes=%d", fmt.value, extension, len(data))
    if fmt is SourceFormat.XLSX:
        return _read_xlsx(data, max_rows)
    if fmt is SourceFormat.HTML:
        return _read_html(data, max_rows)
    return _read_workbook(data, "xlrd", max_rows)


def read_raw_rows(
    path: Path,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> list[list[str]]:
    """Read a supplier file fully into memory and extract its rows.

    Parameters
    ----------
    path: file to read (.xlsx, .xls, .html/.htm or any sniffable content)
    max_rows: rows read from the first sheet/table at most
    max_file_bytes: larger files are rejected before reading
    """
    size = path.stat().st_size
    if size > max_file_bytes:
        raise InvalidFormatError(f"file too large: {size} bytes (limit {max_file_bytes})")
    data = path.read_bytes()
    return read_raw_rows_from_bytes(data, path.suffix, max_rows=max_rows)
