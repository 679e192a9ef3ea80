"""Domain models for inventory records and item forms."""

from dataclasses import dataclass, field, fields
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

NUMERIC_FIELDS: Final = frozenset({"quantity", "price"})

WIRE_NAMES: Final = {
    "expiry_date": "expiryDate",
    "photo_url": "photoURL",
}


class InventoryItem(BaseModel):
    """Inventory record as stored by the remote inventory service."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str | None = None
    barcode: str | None = None
    name: str | None = None
    description: str | None = None
    category: str | None = None
    quantity: int | float | None = None
    price: int | float | None = None
    expiry_date: str | None = Field(default=None, alias="expiryDate")
    photo_url: str | None = Field(default=None, alias="photoURL")

    def to_wire(self) -> dict[str, object]:
        """Return the JSON body used by the inventory service."""
        return self.model_dump(by_alias=True, exclude_none=True)


class _ClearMarker:
    """Marker for a field the user explicitly emptied."""

    def __repr__(self) -> str:
        return "CLEAR"


CLEAR: Final = _ClearMarker()


@dataclass
class ItemDraft:
    """Working copy of the item form, one optional slot per field."""

    barcode: str | None = None
    name: str | None = None
    description: str | None = None
    category: str | None = None
    quantity: str | int | float | None = None
    price: str | int | float | None = None
    expiry_date: str | None = None
    photo_url: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        """Return the form fields in display order."""
        return tuple(item.name for item in fields(cls))


@dataclass
class ChangeSet:
    """Fields to submit for a create or update, keyed by field name."""

    changes: dict[str, object] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.changes)

    def __contains__(self, name: object) -> bool:
        return name in self.changes

    def __getitem__(self, name: str) -> object:
        return self.changes[name]

    def to_payload(self) -> dict[str, object]:
        """Encode for the wire; cleared fields become JSON null."""
        return {
            WIRE_NAMES.get(name, name): None if value is CLEAR else value
            for name, value in self.changes.items()
        }
