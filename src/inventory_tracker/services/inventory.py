"""Inventory page service: item cache and mutations."""

import itertools
import logging
from dataclasses import dataclass, field, replace

from inventory_tracker.adapters.inventory_client import InventoryClient, RequestError
from inventory_tracker.adapters.openfoodfacts_client import ProductImageClient
from inventory_tracker.domain.items import InventoryItem, ItemDraft
from inventory_tracker.services.item_forms import (
    ValidationError,
    build_create_changes,
    build_update_changes,
    draft_from_item,
)

_logger = logging.getLogger(__name__)


@dataclass
class InventoryService:
    """Keeps a cached item list in step with the inventory service.

    Every call is tagged with a sequence number when it is issued. A response
    is only applied if nothing newer has been applied for the same record,
    so responses arriving out of order cannot roll a record back or bring a
    deleted record back.
    """

    client: InventoryClient
    image_client: ProductImageClient
    _items: list[InventoryItem] = field(default_factory=list, init=False)
    _versions: dict[str, int] = field(default_factory=dict, init=False)
    _deleted: dict[str, int] = field(default_factory=dict, init=False)
    _last_listing: int = field(default=0, init=False)
    _sequence: "itertools.count[int]" = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False
    )

    @property
    def items(self) -> list[InventoryItem]:
        """Return the cached items in server order."""
        return list(self._items)

    def get_cached(self, item_id: str) -> InventoryItem | None:
        """Return a cached item by id, if present."""
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    async def refresh(self) -> list[InventoryItem]:
        """Reload the item list from the inventory service."""
        sequence = next(self._sequence)
        items = await self.client.list_items()
        self._apply_listing(sequence, items)
        return self.items

    async def add_item(self, draft: ItemDraft) -> InventoryItem:
        """Create an item from the add form."""
        changes = build_create_changes(draft)
        sequence = next(self._sequence)
        created = await self.client.create_item(changes.to_payload())
        self._apply_record(sequence, created)
        await self._refresh_after_mutation()
        return created

    async def edit_form(self, item_id: str) -> ItemDraft:
        """Return the edit form seeded from the stored record."""
        return draft_from_item(await self._require_cached(item_id))

    async def edit_item(self, item_id: str, draft: ItemDraft) -> InventoryItem:
        """Submit only the fields changed in the edit form."""
        original = await self._require_cached(item_id)
        draft = await self._refresh_photo(original, draft)
        changes = build_update_changes(original, draft)
        _logger.info("Updating item %s: %s", item_id, sorted(changes.changes))
        sequence = next(self._sequence)
        updated = await self.client.update_item(item_id, changes.to_payload())
        self._apply_record(sequence, updated)
        await self._refresh_after_mutation()
        return updated

    async def delete_item(self, item_id: str, *, confirmed: bool) -> bool:
        """Delete an item once the user has confirmed; return True if sent."""
        if not confirmed:
            return False
        sequence = next(self._sequence)
        await self.client.delete_item(item_id)
        self._apply_deletion(sequence, item_id)
        await self._refresh_after_mutation()
        return True

    async def find_by_barcode(self, barcode: str) -> InventoryItem:
        """Fetch a stored item by barcode."""
        return await self.client.get_item_by_barcode(barcode)

    async def lookup_photo(self, barcode: str | None) -> str | None:
        """Look up a product photo for a barcode."""
        if not barcode:
            return None
        return await self.image_client.lookup_image(barcode)

    async def prefill_draft(self, barcode: str) -> ItemDraft:
        """Start an add form from a scanned or typed barcode."""
        photo_url = await self.lookup_photo(barcode)
        return ItemDraft(barcode=barcode, photo_url=photo_url or "")

    async def _refresh_photo(
        self, original: InventoryItem, draft: ItemDraft
    ) -> ItemDraft:
        """Swap in the new product's photo when only the barcode was edited."""
        if not draft.barcode or draft.barcode == (original.barcode or ""):
            return draft
        if (draft.photo_url or "") != (original.photo_url or ""):
            return draft
        photo_url = await self.lookup_photo(draft.barcode)
        if not photo_url:
            return draft
        return replace(draft, photo_url=photo_url)

    async def _require_cached(self, item_id: str) -> InventoryItem:
        original = self.get_cached(item_id)
        if original is None:
            await self.refresh()
            original = self.get_cached(item_id)
        if original is None:
            raise ValidationError(f"Item {item_id} was not found")
        return original

    async def _refresh_after_mutation(self) -> None:
        try:
            await self.refresh()
        except RequestError as exc:
            _logger.warning("Item list refresh failed after mutation: %s", exc)

    def _apply_listing(self, sequence: int, items: list[InventoryItem]) -> None:
        if sequence < self._last_listing:
            _logger.info("Discarding stale item listing (seq %s)", sequence)
            return
        self._last_listing = sequence
        cached = {item.id: item for item in self._items if item.id}
        listed_ids = {item.id for item in items if item.id}
        merged: list[InventoryItem] = []
        for item in items:
            if item.id is None:
                merged.append(item)
                continue
            if self._deleted.get(item.id, 0) > sequence:
                continue
            if self._versions.get(item.id, 0) > sequence and item.id in cached:
                merged.append(cached[item.id])
                continue
            self._versions[item.id] = sequence
            merged.append(item)
        for item_id, item in cached.items():
            if item_id not in listed_ids and self._versions.get(item_id, 0) > sequence:
                merged.append(item)
        self._items = merged
        # A listing issued after a deletion that no longer has the id settles it.
        self._deleted = {
            item_id: deleted_at
            for item_id, deleted_at in self._deleted.items()
            if deleted_at > sequence or item_id in listed_ids
        }
        self._versions = {
            item_id: version
            for item_id, version in self._versions.items()
            if version > sequence or item_id in listed_ids
        }

    def _apply_record(self, sequence: int, item: InventoryItem) -> None:
        if item.id is None:
            self._items.append(item)
            return
        newest = max(self._versions.get(item.id, 0), self._deleted.get(item.id, 0))
        if newest > sequence:
            _logger.info("Discarding stale response for item %s", item.id)
            return
        self._versions[item.id] = sequence
        for index, cached in enumerate(self._items):
            if cached.id == item.id:
                self._items[index] = item
                return
        self._items.append(item)

    def _apply_deletion(self, sequence: int, item_id: str) -> None:
        self._deleted[item_id] = max(self._deleted.get(item_id, 0), sequence)
        self._items = [item for item in self._items if item.id != item_id]
