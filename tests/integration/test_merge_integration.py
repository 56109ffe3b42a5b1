from __future__ import annotations

from pathlib import Path

from price_import.services.orchestrator import load_and_merge
from price_import.services.reconcile import ProductDraft, analyze_import
from price_import.services.session import ImportSession

"""Multi-file merge followed by session edits and reconciliation."""


def test_case_variants_merge_and_reconcile(temp_workdir: Path, xlsx_factory):
    a = xlsx_factory("part1.xlsx", [
        ["barcode", "productName"],
        ["8001234567890", "Widget"],
        ["8001234567891", "Gadget"],
    ])
    b = xlsx_factory("part2.xlsx", [
        ["Barcode", "ProductName"],
        ["8001234567890", "Widget XL"],
    ])
    merged = load_and_merge([a, b])
    assert list(merged.table.header) == ["barcode", "productName", "purchasePrice"]
    assert len(merged.table.as_grid()) == 3 + 1
    assert merged.metrics.essential_found == 2

    session = ImportSession.start(merged.table)
    assert session.set_all_columns(False).selected_header() == ["barcode", "productName", "purchasePrice"]

    existing = {"8001234567891": ProductDraft(barcode="8001234567891", product_name="Gadget")}
    analysis = analyze_import(session.selected_header(), session.selected_rows(), existing)
    assert [p.barcode for p in analysis.new_products] == ["8001234567890"]
    assert analysis.new_products[0].product_name == "Widget XL"
    assert analysis.updated_products == []
    assert analysis.warnings[0].row_numbers == (1, 3)
