from __future__ import annotations

import math
import re

"""Locale-tolerant number parsing for spreadsheet cells.

Two separate notions are used by the analyzer:

- ``is_numeric_cell``: the cheap shape test used to locate the data anchor
  and to count numeric cells in summary rows (comma replaced by a dot, then a
  plain float literal).
- ``parse_number``: the value parser used by the content heuristics and the
  import reconciliation. Grouping styles are tried in a fixed priority:
  European (``1.234,56``), English (``1,234.56``), then a bare comma as
  decimal separator (``12,5``).
"""

__all__ = [
    "is_numeric_cell",
    "parse_number",
    "is_positive_number",
]

_FLOAT_LITERAL = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

# A single group without decimals ("1.234", "1,234") is ambiguous; it falls
# through to the comma-as-decimal rule instead of being read as thousands.
_EUROPEAN_GROUPED = re.compile(r"^[+-]?\d{1,3}(?:(?:\.\d{3})+,\d+|(?:\.\d{3}){2,})$")
_ENGLISH_GROUPED = re.compile(r"^[+-]?\d{1,3}(?:(?:,\d{3})+\.\d+|(?:,\d{3}){2,})$")

_CURRENCY_CHARS = "€$£¥₽₹"
_SPACES = (" ", " ", " ", "'")


def is_numeric_cell(text: str) -> bool:
    s = text.strip()
    if not s:
        return False
    return _FLOAT_LITERAL.match(s.replace(",", ".")) is not None


def parse_number(text: str | None) -> float | None:
    """Parse a cell into a float, or ``None`` when it is not a number.

    Currency symbols and space-like group separators are ignored.

    >>> parse_number("1.234,56")
    1234.56
    >>> parse_number("1,234.56")
    1234.56
    >>> parse_number("12,5")
    12.5
    """
    if text is None:
        return None
    s = text.strip().strip(_CURRENCY_CHARS).strip()
    for sp in _SPACES:
        s = s.replace(sp, "")
    if not s:
        return None

    if _EUROPEAN_GROUPED.match(s):
        s = s.replace(".", "").replace(",", ".")
    elif _ENGLISH_GROUPED.match(s):
        s = s.replace(",", "")
    elif s.count(",") == 1 and "." not in s:
        s = s.replace(",", ".")

    if not _FLOAT_LITERAL.match(s):
        return None
    value = float(s)
    if not math.isfinite(value):
        return None
    return value


def is_positive_number(text: str) -> bool:
    value = parse_number(text)
    return value is not None and value > 0
