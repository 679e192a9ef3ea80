"""Public storefront service."""

from dataclasses import dataclass

from inventory_tracker.adapters.inventory_client import InventoryClient
from inventory_tracker.domain.items import InventoryItem
from inventory_tracker.domain.store import StoreProduct

CURRENCY_SYMBOL = "€"


@dataclass
class StoreService:
    """Builds storefront cards from the inventory."""

    client: InventoryClient

    async def products(self) -> list[StoreProduct]:
        """Return every item as a storefront card, in server order."""
        items = await self.client.list_items()
        return [to_store_product(item) for item in items]


def to_store_product(item: InventoryItem) -> StoreProduct:
    """Format an inventory item for the storefront."""
    price = item.price if item.price is not None else 0
    in_stock = item.quantity is not None and item.quantity > 0
    return StoreProduct(
        id=item.id,
        name=item.name or "Unnamed Product",
        description=item.description or None,
        photo_url=item.photo_url or None,
        price_label=f"{CURRENCY_SYMBOL}{price:.2f}",
        in_stock=in_stock,
        stock_label=f"In Stock: {item.quantity:g}" if in_stock else "Out of Stock",
    )
