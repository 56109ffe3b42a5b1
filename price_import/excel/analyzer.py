from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import cached_property

from ..models.roles import ESSENTIAL_ROLES, CanonicalRole, placeholder_header, role_for
from ..models.table import AnalysisMetrics, NormalizedTable
from .aliases import SUMMARY_TOKENS, is_summary_label, lookup_role, normalize_header_cell, normalize_token
from .heuristics import identify_roles_by_content
from .numbers import is_numeric_cell
from .scoring import compute_metrics

"""Price-list analyzer: turns raw extracted rows into a normalized table.

Pipeline order (each step assumes the previous ones ran):

1. locate the header/data boundary
2. build data rows (skip blank rows, pad to a common width)
3. prune columns that are empty in every data row
4. normalize header cells through the alias table
5. identify roles from headers (exact role tokens)
6. identify remaining roles from cell content
7. guarantee the essential columns (barcode, productName, purchasePrice)
8. drop summary/total rows
9. score confidence (on demand, from the resulting table)
"""

__all__ = [
    "Boundary",
    "AnalysisResult",
    "locate_boundary",
    "build_data_rows",
    "prune_empty_columns",
    "identify_roles_by_header",
    "ensure_mandatory_columns",
    "filter_summary_rows",
    "analyze_rows",
]

logger = logging.getLogger(__name__)

R = CanonicalRole

ANCHOR_MIN_NUMERIC = 3
ANCHOR_MIN_TEXT = 1
SUMMARY_MIN_NUMERIC = 2
IDENTITY_MIN_NAME_LENGTH = 3

# Price roles are matched first so an ambiguous price header is not taken
# by a later role when both are present.
HEADER_PASS_ORDER: tuple[CanonicalRole, ...] = (R.RETAIL_PRICE, R.PURCHASE_PRICE) + tuple(
    role for role in CanonicalRole if role not in (R.RETAIL_PRICE, R.PURCHASE_PRICE)
)


@dataclass(frozen=True)
class Boundary:
    header: list[str]
    data_start: int
    has_header: bool


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of ``analyze_rows`` for one source."""
    table: NormalizedTable
    has_header: bool
    data_start: int
    dropped_summary_rows: int = 0
    source: str | None = None
    header_map: dict[CanonicalRole, int] = field(default_factory=dict)

    @cached_property
    def metrics(self) -> AnalysisMetrics:
        return compute_metrics(self.table)


def _classify(row: Sequence[str]) -> tuple[int, int]:
    numeric = text = 0
    for cell in row:
        value = cell.strip()
        if not value:
            continue
        if is_numeric_cell(value):
            numeric += 1
        else:
            text += 1
    return numeric, text


def _looks_like_header(row: Sequence[str]) -> bool:
    numeric, text = _classify(row)
    if numeric or not text:
        return False
    return any(lookup_role(cell) is not None for cell in row if cell.strip())


def locate_boundary(rows: Sequence[Sequence[str]]) -> Boundary | None:
    """Find the first row that looks like data; the row above is the header.

    Returns ``None`` for empty input.
    """
    if not rows:
        return None
    for index, row in enumerate(rows):
        numeric, text = _classify(row)
        if numeric >= ANCHOR_MIN_NUMERIC and text >= ANCHOR_MIN_TEXT:
            if index > 0:
                logger.debug("data anchor row=%d header row=%d", index, index - 1)
                return Boundary(header=[c.strip() for c in rows[index - 1]],
                                data_start=index, has_header=True)
            break
    else:
        # Narrow tables never reach the numeric threshold; accept a first
        # row made of known header aliases.
        if _looks_like_header(rows[0]) and len(rows) > 1:
            logger.debug("no data anchor, first row matches header aliases")
            return Boundary(header=[c.strip() for c in rows[0]], data_start=1, has_header=True)
    width = len(rows[0])
    logger.debug("no header row detected, synthesizing %d column names", width)
    return Boundary(header=[placeholder_header(i) for i in range(width)],
                    data_start=0, has_header=False)


def build_data_rows(boundary: Boundary, rows: Sequence[Sequence[str]]) -> tuple[list[str], list[list[str]]]:
    """Return ``(header, data_rows)`` padded to a common width."""
    data = [[c.strip() for c in row] for row in rows[boundary.data_start:]]
    data = [row for row in data if any(row)]
    width = max([len(boundary.header)] + [len(row) for row in data])
    header = list(boundary.header) + [""] * (width - len(boundary.header))
    padded = [row + [""] * (width - len(row)) for row in data]
    return header, padded


def prune_empty_columns(header: Sequence[str], rows: Sequence[Sequence[str]]) -> tuple[list[str], list[list[str]]]:
    """Drop columns with no value in any data row; header and rows move together."""
    keep = [i for i in range(len(header)) if any(row[i] for row in rows)]
    if len(keep) != len(header):
        logger.debug("pruned empty columns=%s", [i for i in range(len(header)) if i not in keep])
    return [header[i] for i in keep], [[row[i] for i in keep] for row in rows]


def identify_roles_by_header(normalized: Sequence[str]) -> dict[CanonicalRole, int]:
    """Claim, for each role, the first unclaimed column whose header is the role token."""
    header_map: dict[CanonicalRole, int] = {}
    claimed: set[int] = set()
    for role in HEADER_PASS_ORDER:
        for index, name in enumerate(normalized):
            if index in claimed or name != role.value:
                continue
            header_map[role] = index
            claimed.add(index)
            break
    return header_map


def _final_header(normalized: Sequence[str], header_map: dict[CanonicalRole, int]) -> list[str]:
    by_index = {index: role for role, index in header_map.items()}
    header: list[str] = []
    for index, name in enumerate(normalized):
        role = by_index.get(index)
        if role is not None:
            header.append(role.value)
        elif role_for(name) is not None:
            # duplicate of a role claimed by another column
            header.append(placeholder_header(index))
        else:
            header.append(name)
    return header


def _insert_column(
    position: int,
    role: CanonicalRole,
    header: list[str],
    original: list[str],
    rows: list[list[str]],
    header_map: dict[CanonicalRole, int],
    synthetic: set[int],
) -> None:
    # All buffers shift together or the index mapping breaks.
    for key, index in header_map.items():
        if index >= position:
            header_map[key] = index + 1
    shifted = {i + 1 if i >= position else i for i in synthetic}
    synthetic.clear()
    synthetic.update(shifted)
    for row in rows:
        row.insert(position, "")
    header.insert(position, role.value)
    original.insert(position, "")
    header_map[role] = position
    synthetic.add(position)
    logger.debug("inserted empty column role=%s position=%d", role.value, position)


def ensure_mandatory_columns(
    header: list[str],
    original: list[str],
    rows: list[list[str]],
    header_map: dict[CanonicalRole, int],
) -> set[int]:
    """Insert the missing essential columns in place; return the inserted indices."""
    synthetic: set[int] = set()
    if R.BARCODE not in header_map:
        item = header_map.get(R.ITEM_NUMBER)
        position = item + 1 if item is not None else 0
        _insert_column(position, R.BARCODE, header, original, rows, header_map, synthetic)
    if R.PRODUCT_NAME not in header_map:
        anchors = [header_map[r] for r in (R.BARCODE, R.ITEM_NUMBER) if r in header_map]
        _insert_column(max(anchors) + 1, R.PRODUCT_NAME, header, original, rows, header_map, synthetic)
    if R.PURCHASE_PRICE not in header_map:
        anchors = [header_map[r] for r in (R.QUANTITY, R.PRODUCT_NAME) if r in header_map]
        _insert_column(max(anchors) + 1, R.PURCHASE_PRICE, header, original, rows, header_map, synthetic)
    return synthetic


def _cell(row: Sequence[str], index: int | None) -> str:
    if index is None:
        return ""
    return row[index].strip()


def _is_summary_row(row: Sequence[str], header_map: dict[CanonicalRole, int]) -> bool:
    name = _cell(row, header_map.get(R.PRODUCT_NAME))
    first_text = next((c.strip() for c in row if c.strip() and not is_numeric_cell(c)), "")
    if not (is_summary_label(first_text) or is_summary_label(name)):
        return False
    numeric = sum(1 for c in row if is_numeric_cell(c))
    if numeric < SUMMARY_MIN_NUMERIC:
        return False
    if _cell(row, header_map.get(R.BARCODE)) or _cell(row, header_map.get(R.ITEM_NUMBER)):
        return False
    # Only a name that is exactly a total label loses its identity.
    return len(name) < IDENTITY_MIN_NAME_LENGTH or normalize_token(name) in SUMMARY_TOKENS


def filter_summary_rows(rows: Sequence[Sequence[str]], header_map: dict[CanonicalRole, int]) -> list[list[str]]:
    kept: list[list[str]] = []
    for row in rows:
        if _is_summary_row(row, header_map):
            logger.debug("dropped summary row=%s", list(row))
            continue
        kept.append(list(row))
    return kept


def analyze_rows(raw_rows: Sequence[Sequence[str]], source: str | None = None) -> AnalysisResult:
    """Run the whole analysis pipeline over extracted rows.

    Empty input gives a table holding only the three essential columns.
    """
    boundary = locate_boundary(raw_rows)
    if boundary is None:
        header: list[str] = []
        rows: list[list[str]] = []
        has_header, data_start = False, 0
    else:
        header, rows = build_data_rows(boundary, raw_rows)
        has_header, data_start = boundary.has_header, boundary.data_start

    original, rows = prune_empty_columns(header, rows)
    normalized = [normalize_header_cell(cell, i) for i, cell in enumerate(original)]

    header_map = identify_roles_by_header(normalized)
    header_map = identify_roles_by_content(normalized, rows, header_map)
    final = _final_header(normalized, header_map)

    missing = [r.value for r in ESSENTIAL_ROLES if r not in header_map]
    synthetic = ensure_mandatory_columns(final, original, rows, header_map)

    kept = filter_summary_rows(rows, header_map)
    dropped = len(rows) - len(kept)

    table = NormalizedTable(
        original_header=tuple(original),
        header=tuple(final),
        rows=tuple(tuple(row) for row in kept),
        synthetic_columns=frozenset(synthetic),
    )
    logger.debug(
        "analyzed source=%s has_header=%s data_start=%d columns=%d rows=%d dropped_summary=%d missing=%s",
        source,
        has_header,
        data_start,
        table.width,
        len(table.rows),
        dropped,
        missing,
    )
    return AnalysisResult(
        table=table,
        has_header=has_header,
        data_start=data_start,
        dropped_summary_rows=dropped,
        source=source,
        header_map=dict(header_map),
    )
