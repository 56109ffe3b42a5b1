from __future__ import annotations

from collections import Counter

from ..models.roles import ESSENTIAL_ROLES, EXTRA_ROLES, CanonicalRole
from ..models.table import AnalysisMetrics, NormalizedTable

"""Confidence score and diagnostic issues for an analyzed table.

confidence = 0.6 * essential/3 + 0.25 * barcode fill + 0.15 * extra/9

An essential role inserted by the mandatory-column step does not count as
found. Issues are plain strings meant to be shown as warnings; they never
block an import.
"""

__all__ = [
    "ESSENTIAL_WEIGHT",
    "BARCODE_WEIGHT",
    "EXTRA_WEIGHT",
    "MIN_BARCODE_FILL",
    "compute_metrics",
]

ESSENTIAL_WEIGHT = 0.6
BARCODE_WEIGHT = 0.25
EXTRA_WEIGHT = 0.15
MIN_BARCODE_FILL = 0.3
DUPLICATE_SAMPLE = 5


def compute_metrics(table: NormalizedTable) -> AnalysisMetrics:
    header_map = table.header_map()
    synthetic = table.synthetic_columns

    essential_found = sum(
        1 for role in ESSENTIAL_ROLES if role in header_map and header_map[role] not in synthetic
    )
    extra_found = sum(1 for role in EXTRA_ROLES if role in header_map)

    total_rows = len(table.rows)
    barcode_index = header_map.get(CanonicalRole.BARCODE)
    barcodes = [row[barcode_index].strip() for row in table.rows] if barcode_index is not None else []
    with_barcode = sum(1 for b in barcodes if b)
    fill = with_barcode / total_rows if total_rows else 0.0

    score = (
        ESSENTIAL_WEIGHT * essential_found / len(ESSENTIAL_ROLES)
        + BARCODE_WEIGHT * fill
        + EXTRA_WEIGHT * extra_found / len(EXTRA_ROLES)
    )
    score = min(1.0, max(0.0, score))

    issues: list[str] = []
    for role in ESSENTIAL_ROLES:
        if role not in header_map or header_map[role] in synthetic:
            issues.append(f"missing mandatory column: {role.value}")

    for index, name in enumerate(table.header):
        if index in synthetic:
            continue
        if not any(row[index].strip() for row in table.rows):
            issues.append(f"column '{table.original_header[index] or name}' is empty")

    duplicates = sorted(code for code, count in Counter(b for b in barcodes if b).items() if count > 1)
    if duplicates:
        sample = ", ".join(duplicates[:DUPLICATE_SAMPLE])
        more = "" if len(duplicates) <= DUPLICATE_SAMPLE else ", ..."
        issues.append(f"duplicate barcodes: {len(duplicates)} ({sample}{more})")

    if fill < MIN_BARCODE_FILL:
        issues.append(f"only {fill:.0%} of rows have a barcode")

    return AnalysisMetrics(
        essential_found=essential_found,
        essential_total=len(ESSENTIAL_ROLES),
        rows_with_valid_barcode=with_barcode,
        total_rows=total_rows,
        extra_found=extra_found,
        extra_total=len(EXTRA_ROLES),
        confidence_score=score,
        issues=tuple(issues),
    )
