"""Tests for item form reconciliation."""

import pytest

from inventory_tracker.domain.items import CLEAR, InventoryItem, ItemDraft
from inventory_tracker.services.item_forms import (
    NO_CHANGES_MESSAGE,
    ValidationError,
    build_create_changes,
    build_update_changes,
    draft_from_item,
)


def test_create_drops_empty_and_zero_values() -> None:
    changes = build_create_changes(ItemDraft(name="", price=0, quantity=5))

    assert changes.changes == {"quantity": 5}


def test_create_keeps_text_and_positive_numbers() -> None:
    draft = ItemDraft(
        barcode="3017620422003",
        name="Nutella",
        quantity="12",
        price="3.49",
        expiry_date="2025-06-30",
        photo_url="https://img.test/front.jpg",
    )

    changes = build_create_changes(draft)

    assert changes.changes == {
        "barcode": "3017620422003",
        "name": "Nutella",
        "quantity": 12,
        "price": 3.49,
        "expiry_date": "2025-06-30",
        "photo_url": "https://img.test/front.jpg",
    }
    assert changes.to_payload()["expiryDate"] == "2025-06-30"
    assert changes.to_payload()["photoURL"] == "https://img.test/front.jpg"


def test_create_treats_invalid_numbers_as_missing() -> None:
    changes = build_create_changes(
        ItemDraft(name="Salt", quantity="abc", price=float("nan"))
    )

    assert changes.changes == {"name": "Salt"}


def test_create_drops_negative_numbers() -> None:
    changes = build_create_changes(ItemDraft(quantity=-2, price="-1"))

    assert len(changes) == 0


def test_update_emits_clear_for_emptied_field() -> None:
    original = InventoryItem(id="1", price=10, category="food")

    changes = build_update_changes(original, ItemDraft(price=10, category=""))

    assert changes.changes == {"category": CLEAR}
    assert changes.to_payload() == {"category": None}


def test_update_identical_values_raise_no_changes() -> None:
    original = InventoryItem(id="1", name="Milk", price=1.5, quantity=2)

    with pytest.raises(ValidationError, match=NO_CHANGES_MESSAGE):
        build_update_changes(original, draft_from_item(original))


def test_update_omits_empty_fields_that_were_never_set() -> None:
    original = InventoryItem(id="1", name="Milk")

    changes = build_update_changes(original, ItemDraft(name="Oat milk", category=""))

    assert changes.changes == {"name": "Oat milk"}


def test_update_compares_numbers_numerically() -> None:
    original = InventoryItem(id="1", quantity=3, price=2.5)

    changes = build_update_changes(original, ItemDraft(quantity="3.0", price="2.75"))

    assert changes.changes == {"price": 2.75}


def test_update_clears_numeric_field() -> None:
    original = InventoryItem(id="1", quantity=3)

    changes = build_update_changes(original, ItemDraft(quantity=""))

    assert "quantity" in changes
    assert changes["quantity"] is CLEAR


def test_update_allows_zero_quantity() -> None:
    original = InventoryItem(id="1", quantity=3)

    changes = build_update_changes(original, ItemDraft(quantity=0))

    assert changes.changes == {"quantity": 0}


def test_update_rejects_invalid_numbers() -> None:
    original = InventoryItem(id="1", price=2)

    with pytest.raises(ValidationError, match="Price"):
        build_update_changes(original, ItemDraft(price="-4"))


def test_draft_from_item_fills_missing_text_with_blanks() -> None:
    item = InventoryItem(id="1", name="Tea", quantity=4)

    draft = draft_from_item(item)

    assert draft.name == "Tea"
    assert draft.barcode == ""
    assert draft.quantity == 4
    assert draft.price is None
