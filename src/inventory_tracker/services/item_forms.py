"""Reconcile item form values into minimal change sets."""

import math

from inventory_tracker.domain.items import (
    CLEAR,
    NUMERIC_FIELDS,
    ChangeSet,
    InventoryItem,
    ItemDraft,
)

NO_CHANGES_MESSAGE = "No changes to save"


class ValidationError(Exception):
    """Form values cannot be submitted as they are."""


def draft_from_item(item: InventoryItem) -> ItemDraft:
    """Seed an edit form from a stored record."""
    return ItemDraft(
        barcode=item.barcode or "",
        name=item.name or "",
        description=item.description or "",
        category=item.category or "",
        quantity=item.quantity,
        price=item.price,
        expiry_date=item.expiry_date or "",
        photo_url=item.photo_url or "",
    )


def build_create_changes(draft: ItemDraft) -> ChangeSet:
    """Collect the fields a new item should be created with.

    Empty values are left out. Quantity and price are only sent when they
    are finite numbers above zero; anything else counts as not provided.
    """
    changes: dict[str, object] = {}
    for name in ItemDraft.field_names():
        value = getattr(draft, name)
        if _is_empty(value):
            continue
        if name in NUMERIC_FIELDS:
            number = _to_number(value)
            if number is not None and number > 0:
                changes[name] = number
        else:
            changes[name] = str(value)
    return ChangeSet(changes)


def build_update_changes(original: InventoryItem, draft: ItemDraft) -> ChangeSet:
    """Diff the form against the stored record.

    A field emptied by the user is sent as ``CLEAR`` when the record had a
    value for it. Unchanged fields are left out. Raises ``ValidationError``
    when nothing changed or a number is invalid.
    """
    changes: dict[str, object] = {}
    for name in ItemDraft.field_names():
        value = getattr(draft, name)
        original_value = getattr(original, name)
        if _is_empty(value):
            if not _is_empty(original_value):
                changes[name] = CLEAR
            continue
        if name in NUMERIC_FIELDS:
            number = _to_number(value)
            if number is None or number < 0:
                raise ValidationError(
                    f"{name.capitalize()} must be a non-negative number"
                )
            if original_value is None or number != original_value:
                changes[name] = number
        elif str(value) != original_value:
            changes[name] = str(value)

    if not changes:
        raise ValidationError(NO_CHANGES_MESSAGE)
    return ChangeSet(changes)


def _is_empty(value: object) -> bool:
    return value is None or value == ""


def _to_number(value: object) -> int | float | None:
    """Coerce a form entry to a finite number, or None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number
