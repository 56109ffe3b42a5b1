from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence

from ..models.roles import CanonicalRole
from .aliases import DISCOUNTED_PRICE_KEYWORDS, RETAIL_PRICE_KEYWORDS
from .numbers import is_numeric_cell, is_positive_number, parse_number

"""Content-driven role identification (second pass of the role identifier).

Runs only for roles the header pass left unassigned and only over columns no
role claimed yet. Roles are tried in a fixed order; each takes the first
(leftmost) qualifying column. Ratios are computed over all data rows.
"""

__all__ = [
    "identify_roles_by_content",
]

logger = logging.getLogger(__name__)

R = CanonicalRole

BARCODE_RATIO = 0.5
BARCODE_LENGTHS = frozenset({8, 12, 13})
NUMERIC_RATIO = 0.7
TOTAL_PRICE_RATIO = 0.7
TOTAL_PRICE_TOLERANCE = 0.1
PRODUCT_NAME_RATIO = 0.5
PRODUCT_NAME_MIN_LENGTH = 3
DISCOUNT_RATIO = 0.5
ROW_NUMBER_RATIO = 0.5
ROW_NUMBER_MAX_LENGTH = 6
TEXT_RATIO = 0.5

# Length bands for the free-text columns left after the other roles.
LONG_TEXT_MEAN = 20.0
LONG_TEXT_MAX = 40
MEDIUM_TEXT_MEAN = 8.0

_DISCOUNT_PATTERN = re.compile(r"^(?:0[.,]\d{1,2}|\d{1,3}(?:[.,]\d+)?\s?%)$")

Column = list[str]


def _ratio(values: Sequence[str], predicate: Callable[[str], bool]) -> float:
    if not values:
        return 0.0
    hits = sum(1 for v in values if predicate(v))
    return hits / len(values)


def _is_barcode(value: str) -> bool:
    v = value.strip()
    return v.isdigit() and len(v) in BARCODE_LENGTHS


def _is_text(value: str) -> bool:
    v = value.strip()
    return bool(v) and not is_numeric_cell(v)


def _is_product_name(value: str) -> bool:
    return _is_text(value) and len(value.strip()) >= PRODUCT_NAME_MIN_LENGTH


def _is_discount(value: str) -> bool:
    return _DISCOUNT_PATTERN.match(value.strip()) is not None


def _is_row_number(value: str) -> bool:
    v = value.strip()
    return v.isdigit() and len(v) <= ROW_NUMBER_MAX_LENGTH


class _ContentScan:
    """Working state of one content pass: columns, assignments, free indices."""

    def __init__(self, header: Sequence[str], rows: Sequence[Sequence[str]],
                 header_map: dict[CanonicalRole, int]) -> None:
        self.header = header
        self.columns: list[Column] = [[row[i] for row in rows] for i in range(len(header))]
        self.assigned = dict(header_map)
        self.used = set(header_map.values())

    def unused(self) -> list[int]:
        return [i for i in range(len(self.columns)) if i not in self.used]

    def claim(self, role: CanonicalRole, index: int, reason: str) -> None:
        self.assigned[role] = index
        self.used.add(index)
        logger.debug("content match role=%s column=%d reason=%s", role.value, index, reason)

    def first_matching(self, predicate: Callable[[str], bool], threshold: float) -> int | None:
        for index in self.unused():
            if _ratio(self.columns[index], predicate) >= threshold:
                return index
        return None

    def assign_first(self, role: CanonicalRole, predicate: Callable[[str], bool],
                     threshold: float, reason: str) -> None:
        if role in self.assigned:
            return
        index = self.first_matching(predicate, threshold)
        if index is not None:
            self.claim(role, index, reason)


def _match_total_price(scan: _ContentScan) -> None:
    if R.TOTAL_PRICE in scan.assigned:
        return
    if R.QUANTITY not in scan.assigned or R.PURCHASE_PRICE not in scan.assigned:
        return
    quantities = scan.columns[scan.assigned[R.QUANTITY]]
    prices = scan.columns[scan.assigned[R.PURCHASE_PRICE]]
    for index in scan.unused():
        totals = scan.columns[index]
        if not totals:
            continue
        hits = 0
        for qty_text, price_text, total_text in zip(quantities, prices, totals, strict=True):
            qty = parse_number(qty_text)
            price = parse_number(price_text)
            total = parse_number(total_text)
            if qty is None or price is None or total is None:
                continue
            expected = qty * price
            if abs(total - expected) <= TOTAL_PRICE_TOLERANCE * max(expected, 1.0):
                hits += 1
        if hits / len(totals) >= TOTAL_PRICE_RATIO:
            scan.claim(R.TOTAL_PRICE, index, "qty*price")
            return


def _match_sale_prices(scan: _ContentScan) -> None:
    for index in scan.unused():
        if R.RETAIL_PRICE in scan.assigned and R.DISCOUNTED_PRICE in scan.assigned:
            return
        if _ratio(scan.columns[index], is_positive_number) < NUMERIC_RATIO:
            continue
        token = scan.header[index]
        if any(k in token for k in DISCOUNTED_PRICE_KEYWORDS):
            wanted = R.DISCOUNTED_PRICE
        elif any(k in token for k in RETAIL_PRICE_KEYWORDS):
            wanted = R.RETAIL_PRICE
        else:
            wanted = R.RETAIL_PRICE
        if wanted not in scan.assigned:
            scan.claim(wanted, index, f"numeric header={token}")


def _text_band(values: Column) -> CanonicalRole:
    lengths = [len(v.strip()) for v in values if v.strip()]
    mean = sum(lengths) / len(lengths)
    longest = max(lengths)
    if mean >= LONG_TEXT_MEAN or longest >= LONG_TEXT_MAX:
        return R.SECOND_PRODUCT_NAME
    if mean >= MEDIUM_TEXT_MEAN:
        return R.SUPPLIER
    return R.CATEGORY


def _match_free_text(scan: _ContentScan) -> None:
    wanted = (R.SECOND_PRODUCT_NAME, R.SUPPLIER, R.CATEGORY)
    if all(role in scan.assigned for role in wanted):
        return
    candidates: list[tuple[int, CanonicalRole]] = []
    for index in scan.unused():
        values = scan.columns[index]
        if _ratio(values, _is_text) < TEXT_RATIO:
            continue
        candidates.append((index, _text_band(values)))
    for role in wanted:
        if role in scan.assigned:
            continue
        for index, band in candidates:
            if band is role and index not in scan.used:
                scan.claim(role, index, "text length band")
                break


def identify_roles_by_content(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    header_map: dict[CanonicalRole, int],
) -> dict[CanonicalRole, int]:
    """Return ``header_map`` extended with roles inferred from cell content.

    The input mapping is not modified.
    """
    scan = _ContentScan(header, rows, header_map)
    if not rows:
        return scan.assigned

    scan.assign_first(R.BARCODE, _is_barcode, BARCODE_RATIO, "digits 8/12/13")
    scan.assign_first(R.QUANTITY, is_positive_number, NUMERIC_RATIO, "positive numbers")
    # Same test as quantity: picks the next qualifying column in scan order.
    scan.assign_first(R.PURCHASE_PRICE, is_positive_number, NUMERIC_RATIO, "positive numbers")
    _match_total_price(scan)
    scan.assign_first(R.PRODUCT_NAME, _is_product_name, PRODUCT_NAME_RATIO, "text >=3 chars")
    scan.assign_first(R.DISCOUNT, _is_discount, DISCOUNT_RATIO, "0.xx or xx%")
    scan.assign_first(R.ROW_NUMBER, _is_row_number, ROW_NUMBER_RATIO, "short digits")
    _match_sale_prices(scan)
    _match_free_text(scan)
    return scan.assigned
