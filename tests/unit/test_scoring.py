from __future__ import annotations

import pytest

from price_import.excel.scoring import compute_metrics
from price_import.models.table import NormalizedTable


def _table(header, rows, synthetic=(), original=None):
    return NormalizedTable(
        original_header=tuple(original if original is not None else header),
        header=tuple(header),
        rows=tuple(tuple(r) for r in rows),
        synthetic_columns=frozenset(synthetic),
    )


def test_full_score_components():
    table = _table(
        ["barcode", "productName", "purchasePrice", "quantity"],
        [["8001234567890", "Widget", "1.0", "2"], ["8001234567891", "Gadget", "2.0", "1"]],
    )
    metrics = compute_metrics(table)
    assert metrics.essential_found == 3
    assert metrics.extra_found == 1
    assert metrics.rows_with_valid_barcode == 2
    assert metrics.confidence_score == pytest.approx(0.6 + 0.25 + 0.15 / 9)
    assert metrics.barcode_fill_ratio == 1.0
    assert metrics.issues == ()


def test_synthetic_essential_column_does_not_count():
    table = _table(
        ["barcode", "productName", "purchasePrice"],
        [["8001234567890", "Widget", ""]],
        synthetic={2},
        original=["EAN", "Nome", ""],
    )
    metrics = compute_metrics(table)
    assert metrics.essential_found == 2
    assert metrics.issues == ("missing mandatory column: purchasePrice",)


def test_issue_order_and_texts():
    table = _table(
        ["barcode", "productName", "purchasePrice", "colore"],
        [
            ["111", "Widget", "1", ""],
            ["111", "Gadget", "2", ""],
            ["", "Cavo", "3", ""],
            ["", "Presa", "4", ""],
            ["", "Spina", "5", ""],
            ["", "Lampada", "6", ""],
            ["", "Filo", "7", ""],
        ],
        original=["EAN", "Nome", "Prezzo", "Colore"],
    )
    metrics = compute_metrics(table)
    assert metrics.issues == (
        "column 'Colore' is empty",
        "duplicate barcodes: 1 (111)",
        "only 29% of rows have a barcode",
    )


def test_empty_table_scores_zero():
    table = _table(["barcode", "productName", "purchasePrice"], [], synthetic={0, 1, 2})
    metrics = compute_metrics(table)
    assert metrics.confidence_score == 0.0
    assert metrics.total_rows == 0
    assert metrics.issues[-1] == "only 0% of rows have a barcode"
