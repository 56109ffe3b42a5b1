from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..excel.errors import InvalidFormatError
from ..excel.numbers import parse_number
from ..models.roles import CanonicalRole

"""Reconciliation of an analyzed price list against known products.

Given a normalized header, its data rows and the products already known to
the caller (keyed by barcode), classify every barcode as a new product, an
update of an existing one, or unchanged. Nothing is persisted here; applying
the result is the caller's job.

Rows sharing a barcode are merged: the last row wins for descriptive and
price fields, quantities are summed, and a duplicate warning lists the rows.
"""

__all__ = [
    "ProductDraft",
    "ChangedField",
    "ProductUpdate",
    "RowError",
    "DuplicateWarning",
    "ImportAnalysis",
    "analyze_import",
]

logger = logging.getLogger(__name__)

PRICE_EPSILON = 0.0001


@dataclass(frozen=True)
class ProductDraft:
    barcode: str
    item_number: str | None = None
    product_name: str | None = None
    second_product_name: str | None = None
    purchase_price: float | None = None
    retail_price: float | None = None
    stock_quantity: float | None = None
    supplier_name: str | None = None
    category_name: str | None = None


class ChangedField(str, Enum):
    ITEM_NUMBER = "item_number"
    PRODUCT_NAME = "product_name"
    SECOND_PRODUCT_NAME = "second_product_name"
    PURCHASE_PRICE = "purchase_price"
    RETAIL_PRICE = "retail_price"
    STOCK_QUANTITY = "stock_quantity"
    SUPPLIER_NAME = "supplier_name"
    CATEGORY_NAME = "category_name"


_NUMERIC_FIELDS = frozenset({
    ChangedField.PURCHASE_PRICE,
    ChangedField.RETAIL_PRICE,
    ChangedField.STOCK_QUANTITY,
})


@dataclass(frozen=True)
class ProductUpdate:
    barcode: str
    old: ProductDraft
    new: ProductDraft
    changed_fields: tuple[ChangedField, ...]


@dataclass(frozen=True)
class RowError:
    row_number: int  # 1-based data row
    reason: str
    row_content: dict[str, str]


@dataclass(frozen=True)
class DuplicateWarning:
    barcode: str
    row_numbers: tuple[int, ...]


@dataclass(frozen=True)
class ImportAnalysis:
    new_products: list[ProductDraft] = field(default_factory=list)
    updated_products: list[ProductUpdate] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[DuplicateWarning] = field(default_factory=list)


@dataclass
class _PendingRow:
    last_row: dict[str, str]
    row_numbers: list[int]
    quantity_sum: float


def _text_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _numbers_equal(lhs: float | None, rhs: float | None) -> bool:
    if lhs is None or rhs is None:
        return lhs is None and rhs is None
    return abs(lhs - rhs) < PRICE_EPSILON


def _draft_from_row(barcode: str, row: Mapping[str, str]) -> ProductDraft:
    R = CanonicalRole
    quantity_text = row.get("stockQuantity") or row.get(R.QUANTITY.value, "")
    return ProductDraft(
        barcode=barcode,
        item_number=_text_or_none(row.get(R.ITEM_NUMBER.value)),
        product_name=_text_or_none(row.get(R.PRODUCT_NAME.value)),
        second_product_name=_text_or_none(row.get(R.SECOND_PRODUCT_NAME.value)),
        purchase_price=parse_number(row.get(R.PURCHASE_PRICE.value, "")),
        retail_price=parse_number(row.get(R.RETAIL_PRICE.value, "")),
        stock_quantity=parse_number(quantity_text),
        supplier_name=_text_or_none(row.get(R.SUPPLIER.value)),
        category_name=_text_or_none(row.get(R.CATEGORY.value)),
    )


def _changed_fields(old: ProductDraft, new: ProductDraft) -> tuple[ChangedField, ...]:
    changed: list[ChangedField] = []
    for f in ChangedField:
        before = getattr(old, f.value)
        after = getattr(new, f.value)
        if f in _NUMERIC_FIELDS:
            if not _numbers_equal(before, after):
                changed.append(f)
        elif (before or "") != (after or ""):
            changed.append(f)
    return tuple(changed)


def analyze_import(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    existing: Mapping[str, ProductDraft],
) -> ImportAnalysis:
    """Classify the rows of a normalized table against ``existing`` products.

    Raises:
        InvalidFormatError: the header has no barcode column.
    """
    if CanonicalRole.BARCODE.value not in header:
        raise InvalidFormatError("no barcode column in header")

    errors: list[RowError] = []
    pending: dict[str, _PendingRow] = {}

    for index, row in enumerate(rows):
        row_number = index + 1
        mapped = {
            key: (row[col].strip() if col < len(row) else "")
            for col, key in enumerate(header)
        }
        barcode = mapped.get(CanonicalRole.BARCODE.value, "")
        if not barcode:
            errors.append(RowError(row_number=row_number, reason="missing barcode", row_content=mapped))
            continue
        quantity = (
            parse_number(mapped.get("stockQuantity", ""))
            or parse_number(mapped.get(CanonicalRole.QUANTITY.value, ""))
            or 0.0
        )
        group = pending.get(barcode)
        if group is None:
            pending[barcode] = _PendingRow(last_row=mapped, row_numbers=[row_number], quantity_sum=quantity)
        else:
            group.last_row = mapped
            group.row_numbers.append(row_number)
            group.quantity_sum += quantity

    new_products: list[ProductDraft] = []
    updates: list[ProductUpdate] = []
    warnings: list[DuplicateWarning] = []

    for barcode in sorted(pending):
        group = pending[barcode]
        row = dict(group.last_row)
        if group.quantity_sum > 0:
            row["stockQuantity"] = repr(group.quantity_sum)
        draft = _draft_from_row(barcode, row)

        old = existing.get(barcode)
        if old is None:
            new_products.append(draft)
        else:
            changed = _changed_fields(old, draft)
            if changed:
                updates.append(ProductUpdate(barcode=barcode, old=old, new=draft, changed_fields=changed))

        if len(group.row_numbers) > 1:
            warnings.append(DuplicateWarning(barcode=barcode, row_numbers=tuple(group.row_numbers)))

    logger.debug(
        "reconciled rows=%d new=%d updated=%d errors=%d duplicates=%d",
        len(rows),
        len(new_products),
        len(updates),
        len(errors),
        len(warnings),
    )
    return ImportAnalysis(
        new_products=new_products,
        updated_products=updates,
        errors=errors,
        warnings=warnings,
    )
