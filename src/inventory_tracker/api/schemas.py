"""Pydantic models for item form payloads."""

from dataclasses import asdict, replace

from pydantic import BaseModel, ConfigDict, Field

from inventory_tracker.domain.items import WIRE_NAMES, ItemDraft


class ItemForm(BaseModel):
    """Item form values as submitted by the client."""

    model_config = ConfigDict(populate_by_name=True)

    barcode: str | None = None
    name: str | None = None
    description: str | None = None
    category: str | None = None
    quantity: str | int | float | None = None
    price: str | int | float | None = None
    expiry_date: str | None = Field(default=None, alias="expiryDate")
    photo_url: str | None = Field(default=None, alias="photoURL")

    def to_draft(self, base: ItemDraft | None = None) -> ItemDraft:
        """Overlay the submitted fields on a base draft."""
        submitted = {name: getattr(self, name) for name in self.model_fields_set}
        return replace(base or ItemDraft(), **submitted)


def draft_payload(draft: ItemDraft) -> dict[str, object]:
    """Serialize a draft with the inventory service's field names."""
    return {WIRE_NAMES.get(name, name): value for name, value in asdict(draft).items()}
