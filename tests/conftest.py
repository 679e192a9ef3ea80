"""Shared test fixtures."""

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from inventory_tracker.adapters.inventory_client import InventoryClient, RequestError
from inventory_tracker.adapters.openfoodfacts_client import ProductImageClient
from inventory_tracker.config import Settings
from inventory_tracker.containers import AppContainer
from inventory_tracker.domain.items import InventoryItem
from inventory_tracker.domain.scanner import CameraDevice, CameraTarget, ScanConfig
from inventory_tracker.services.dashboard import DashboardService
from inventory_tracker.services.inventory import InventoryService
from inventory_tracker.services.scanner import (
    BarcodeScannerAdapter,
    CameraBackend,
    ScanInbox,
)
from inventory_tracker.services.store import StoreService


@dataclass
class InMemoryInventoryClient(InventoryClient):
    """In-memory inventory service for tests."""

    items: dict[str, InventoryItem] = field(default_factory=dict)
    created_payloads: list[dict[str, object]] = field(default_factory=list)
    updated_payloads: list[tuple[str, dict[str, object]]] = field(
        default_factory=list
    )
    deleted_ids: list[str] = field(default_factory=list)
    list_calls: int = 0
    _ids: "itertools.count[int]" = field(default_factory=lambda: itertools.count(1))

    def add(self, **values: object) -> InventoryItem:
        item = InventoryItem.model_validate(
            {"id": str(next(self._ids)), **values}
        )
        assert item.id is not None
        self.items[item.id] = item
        return item

    async def list_items(self) -> list[InventoryItem]:
        self.list_calls += 1
        return list(self.items.values())

    async def get_item_by_barcode(self, barcode: str) -> InventoryItem:
        for item in self.items.values():
            if item.barcode == barcode:
                return item
        raise RequestError("Item not found", status_code=404, detail="Item not found")

    async def create_item(self, payload: dict[str, object]) -> InventoryItem:
        self.created_payloads.append(payload)
        return self.add(**payload)

    async def update_item(
        self, item_id: str, payload: dict[str, object]
    ) -> InventoryItem:
        self.updated_payloads.append((item_id, payload))
        if item_id not in self.items:
            raise RequestError("Item not found", status_code=404, detail="Item not found")
        merged = {**self.items[item_id].to_wire(), **payload}
        updated = InventoryItem.model_validate(
            {key: value for key, value in merged.items() if value is not None}
        )
        self.items[item_id] = updated
        return updated

    async def delete_item(self, item_id: str) -> None:
        self.deleted_ids.append(item_id)
        self.items.pop(item_id, None)


@dataclass
class FakeImageClient(ProductImageClient):
    """Fake product image lookup keyed by barcode."""

    images: dict[str, str] = field(default_factory=dict)
    lookups: list[str] = field(default_factory=list)

    async def lookup_image(self, barcode: str) -> str | None:
        self.lookups.append(barcode)
        return self.images.get(barcode)


@dataclass
class FakeCameraBackend(CameraBackend):
    """Fake camera backend that records sessions and exposes callbacks."""

    cameras: list[CameraDevice] = field(
        default_factory=lambda: [CameraDevice(id="cam-1", label="Integrated Camera")]
    )
    start_error: Exception | None = None
    stop_error: Exception | None = None
    active_sessions: int = 0
    start_calls: list[CameraTarget] = field(default_factory=list)
    stop_calls: int = 0
    list_calls: int = 0
    configs: list[ScanConfig] = field(default_factory=list)
    on_decoded: Callable[[str], None] | None = None
    on_frame_error: Callable[[str], None] | None = None

    async def list_cameras(self) -> list[CameraDevice]:
        self.list_calls += 1
        return self.cameras

    async def start(
        self,
        target: CameraTarget,
        config: ScanConfig,
        on_decoded: Callable[[str], None],
        on_frame_error: Callable[[str], None],
    ) -> None:
        self.start_calls.append(target)
        self.configs.append(config)
        if self.start_error is not None:
            raise self.start_error
        self.active_sessions += 1
        self.on_decoded = on_decoded
        self.on_frame_error = on_frame_error

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error
        if self.active_sessions:
            self.active_sessions -= 1


@pytest.fixture
def settings() -> Settings:
    return Settings(
        inventory_api_url="https://inventory.test/api/inventory",
        retry_delay_seconds=0,
    )


@pytest.fixture
def inventory_client() -> InMemoryInventoryClient:
    return InMemoryInventoryClient()


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient(
        images={"3017620422003": "https://images.test/nutella-front.jpg"}
    )


@pytest.fixture
def camera_backend() -> FakeCameraBackend:
    return FakeCameraBackend()


@pytest.fixture
def container(
    settings: Settings,
    inventory_client: InMemoryInventoryClient,
    image_client: FakeImageClient,
    camera_backend: FakeCameraBackend,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        inventory_client=inventory_client,
        image_client=image_client,
        inventory_service=InventoryService(
            client=inventory_client, image_client=image_client
        ),
        dashboard_service=DashboardService(inventory_client),
        store_service=StoreService(inventory_client),
        scanner=BarcodeScannerAdapter(backend=camera_backend),
        scan_inbox=ScanInbox(),
        close_resources=close_resources,
    )
