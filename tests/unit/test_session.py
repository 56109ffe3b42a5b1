from __future__ import annotations

import pytest

from price_import.models.roles import CanonicalRole
from price_import.models.table import NormalizedTable
from price_import.services.session import ImportSession

R = CanonicalRole


@pytest.fixture()
def session() -> ImportSession:
    table = NormalizedTable(
        original_header=("EAN", "Nome", "Qta", "Prezzo", "Colore"),
        header=("barcode", "productName", "quantity", "purchasePrice", "colore"),
        rows=(
            ("8001234567890", "Widget", "2", "1,50", "rosso"),
            ("8001234567891", "Gadget", "1", "2,00", "blu"),
        ),
    )
    return ImportSession.start(table)


def test_start_selects_every_column(session):
    assert session.selected == (True,) * 5
    assert session.metrics.essential_found == 3


def test_swap_when_role_lives_elsewhere(session):
    swapped = session.assign_role(4, R.QUANTITY)
    assert swapped.header == ("barcode", "productName", "colore", "purchasePrice", "quantity")
    assert session.header[2] == "quantity"  # original snapshot untouched


def test_assign_new_role_replaces_non_essential(session):
    updated = session.assign_role(4, R.CATEGORY)
    assert updated.header[4] == "category"
    assert updated.metrics.extra_found == session.metrics.extra_found + 1


def test_assign_refuses_to_drop_essential_role(session):
    assert session.assign_role(0, R.CATEGORY) is session


def test_swap_keeps_essential_columns_selected(session):
    deselected = session.set_column_selected(4, False)
    swapped = deselected.assign_role(4, R.PRODUCT_NAME)
    assert swapped.header[4] == "productName"
    assert swapped.is_selected(4)


def test_roles_stay_unique_after_commands(session):
    s = session.assign_role(4, R.QUANTITY).assign_role(2, R.SUPPLIER).clear_role(4)
    roles = [h for h in s.header if h in {r.value for r in R}]
    assert len(roles) == len(set(roles))


def test_clear_role(session):
    cleared = session.clear_role(2)
    assert cleared.header[2] == "col3"
    assert session.clear_role(0) is session
    assert session.clear_role(4) is session


def test_essential_column_cannot_be_deselected(session):
    assert session.toggle_column(0).is_selected(0)
    toggled = session.toggle_column(4)
    assert not toggled.is_selected(4)
    assert toggled.toggle_column(4).is_selected(4)


def test_set_all_columns(session):
    none = session.set_all_columns(False)
    assert none.selected_indices() == [0, 1, 3]
    assert none.selected_header() == ["barcode", "productName", "purchasePrice"]
    assert none.set_all_columns(True).selected == (True,) * 5


def test_selected_rows_and_preview(session):
    s = session.set_column_selected(4, False)
    assert s.selected_rows()[0] == ["8001234567890", "Widget", "2", "1,50"]
    assert len(s.preview_rows(1)) == 1


def test_column_out_of_range(session):
    with pytest.raises(IndexError):
        session.toggle_column(9)
