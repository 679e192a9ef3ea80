"""Storefront domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoreProduct:
    """Public storefront card for an inventory item."""

    id: str | None
    name: str
    description: str | None
    photo_url: str | None
    price_label: str
    in_stock: bool
    stock_label: str
