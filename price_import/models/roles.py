from __future__ import annotations

from enum import Enum

"""Canonical column roles for supplier price lists.

Every analyzed column is tagged either with one of the roles below or with a
passthrough token / ``colN`` placeholder. The declaration order of
``CanonicalRole`` is the catalog order used by header matching.
"""

__all__ = [
    "CanonicalRole",
    "ESSENTIAL_ROLES",
    "EXTRA_ROLES",
    "role_for",
    "placeholder_header",
]


class CanonicalRole(str, Enum):
    """Closed catalog of semantic column roles.

    Values are the strings written into the normalized header.
    """
    BARCODE = "barcode"
    PRODUCT_NAME = "productName"
    SECOND_PRODUCT_NAME = "secondProductName"
    ITEM_NUMBER = "itemNumber"
    QUANTITY = "quantity"
    PURCHASE_PRICE = "purchasePrice"
    TOTAL_PRICE = "totalPrice"
    RETAIL_PRICE = "retailPrice"
    DISCOUNTED_PRICE = "discountedPrice"
    DISCOUNT = "discount"
    SUPPLIER = "supplier"
    CATEGORY = "category"
    ROW_NUMBER = "rowNumber"
    REAL_QUANTITY = "realQuantity"
    OLD_PURCHASE_PRICE = "oldPurchasePrice"
    OLD_RETAIL_PRICE = "oldRetailPrice"

    def __str__(self) -> str:
        return self.value


# Must always exist in an analyzed table and cannot be deselected.
ESSENTIAL_ROLES: tuple[CanonicalRole, ...] = (
    CanonicalRole.BARCODE,
    CanonicalRole.PRODUCT_NAME,
    CanonicalRole.PURCHASE_PRICE,
)

# Optional roles that raise the confidence score when found.
EXTRA_ROLES: tuple[CanonicalRole, ...] = (
    CanonicalRole.ITEM_NUMBER,
    CanonicalRole.SECOND_PRODUCT_NAME,
    CanonicalRole.QUANTITY,
    CanonicalRole.TOTAL_PRICE,
    CanonicalRole.RETAIL_PRICE,
    CanonicalRole.DISCOUNTED_PRICE,
    CanonicalRole.DISCOUNT,
    CanonicalRole.SUPPLIER,
    CanonicalRole.CATEGORY,
)

_BY_VALUE = {role.value: role for role in CanonicalRole}


def role_for(header: str) -> CanonicalRole | None:
    """Return the role whose value equals ``header`` exactly, if any."""
    return _BY_VALUE.get(header)


def placeholder_header(index: int) -> str:
    """Synthetic header for a column without role (1-based)."""
    return f"col{index + 1}"
