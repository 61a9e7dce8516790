"""Tests for normalize_extraction — untrusted receipt payloads."""

from datetime import datetime

import pytest

from src.fs_common.errors import ReconciliationInputError
from src.fs_receipt.domain.extraction import DEFAULT_MERCHANT, normalize_extraction


def test_well_formed_payload() -> None:
    receipt = normalize_extraction({
        "merchant": "Burger Barn",
        "date": "2026-03-03T12:30:00Z",
        "items": [{"name": "Burger", "price": 12.0}, {"name": "Fries", "price": "4.00"}],
        "subtotal": 16.0,
        "tax": 1.6,
        "tip": 0,
        "total": 17.6,
    })
    assert receipt.merchant == "Burger Barn"
    assert receipt.receipt_date == datetime.fromisoformat("2026-03-03T12:30:00+00:00")
    assert [(i.name, i.price_cents) for i in receipt.items] == [("Burger", 1200), ("Fries", 400)]
    assert (receipt.subtotal_cents, receipt.tax_cents, receipt.tip_cents, receipt.total_cents) == (
        1600, 160, 0, 1760,
    )


def test_inconsistent_totals_are_kept_as_declared() -> None:
    receipt = normalize_extraction({
        "items": [{"name": "A", "price": 9}],
        "subtotal": 20,
        "total": 25,
    })
    assert receipt.subtotal_cents == 2000
    assert sum(i.price_cents for i in receipt.items) == 900


def test_defaults_for_missing_fields() -> None:
    receipt = normalize_extraction({
        "items": [{"price": 3}, {"name": "  ", "price": 2}],
        "total": 5,
        "date": "not a date",
    })
    assert receipt.merchant == DEFAULT_MERCHANT
    assert receipt.receipt_date is None
    assert [i.name for i in receipt.items] == ["Item 1", "Item 2"]
    assert receipt.subtotal_cents == 0


def test_no_items_falls_back_to_single_subtotal_item() -> None:
    receipt = normalize_extraction({"merchant": "Cafe", "items": [], "subtotal": 8, "total": 9})
    assert len(receipt.items) == 1
    assert receipt.items[0].name == "Cafe"
    assert receipt.items[0].price_cents == 800


def test_no_items_and_no_subtotal_uses_total() -> None:
    receipt = normalize_extraction({"total": 12.5})
    assert receipt.items[0].price_cents == 1250


@pytest.mark.parametrize("payload", [{}, {"total": 0}, {"total": "abc"}, {"total": -3}])
def test_unusable_total_rejected(payload: dict) -> None:
    with pytest.raises(ReconciliationInputError):
        normalize_extraction(payload)


def test_malformed_items_rejected() -> None:
    with pytest.raises(ReconciliationInputError, match="items"):
        normalize_extraction({"total": 5, "items": "burger"})
    with pytest.raises(ReconciliationInputError, match="item 1"):
        normalize_extraction({"total": 5, "items": ["burger"]})
