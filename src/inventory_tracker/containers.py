"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from inventory_tracker.adapters.inventory_client import (
    HttpxInventoryClient,
    InventoryClient,
)
from inventory_tracker.adapters.openfoodfacts_client import (
    HttpxOpenFoodFactsClient,
    ProductImageClient,
)
from inventory_tracker.config import Settings, parse_camera_backend
from inventory_tracker.services.dashboard import DashboardService
from inventory_tracker.services.inventory import InventoryService
from inventory_tracker.services.scanner import (
    BarcodeScannerAdapter,
    CameraBackend,
    NoCameraBackend,
    ScanInbox,
)
from inventory_tracker.services.store import StoreService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    inventory_client: InventoryClient
    image_client: ProductImageClient
    inventory_service: InventoryService
    dashboard_service: DashboardService
    store_service: StoreService
    scanner: BarcodeScannerAdapter
    scan_inbox: ScanInbox
    close_resources: Callable[[], Awaitable[None]]


def build_camera_backend(settings: Settings) -> CameraBackend:
    """Create the configured camera backend."""
    backend = parse_camera_backend(settings.camera_backend)
    if backend is None:
        return NoCameraBackend()
    if backend == "opencv":
        from inventory_tracker.adapters.opencv_camera import (  # noqa: PLC0415
            OpenCvCameraBackend,
        )

        return OpenCvCameraBackend(max_devices=settings.camera_max_devices)
    raise ValueError(f"Unknown camera backend: {settings.camera_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    inventory_client = HttpxInventoryClient.create(
        resolved_settings.inventory_api_url,
        timeout_seconds=resolved_settings.request_timeout_seconds,
        retry_attempts=resolved_settings.retry_attempts,
        retry_delay_seconds=resolved_settings.retry_delay_seconds,
    )
    image_client = HttpxOpenFoodFactsClient.create(
        resolved_settings.product_catalog_url
    )
    inventory_service = InventoryService(
        client=inventory_client,
        image_client=image_client,
    )
    scanner = BarcodeScannerAdapter(
        backend=build_camera_backend(resolved_settings),
        enumeration_supported=resolved_settings.camera_enumeration_supported,
    )

    async def close_resources() -> None:
        await scanner.close()
        await inventory_client.close()
        await image_client.close()

    return AppContainer(
        settings=resolved_settings,
        inventory_client=inventory_client,
        image_client=image_client,
        inventory_service=inventory_service,
        dashboard_service=DashboardService(inventory_client),
        store_service=StoreService(inventory_client),
        scanner=scanner,
        scan_inbox=ScanInbox(),
        close_resources=close_resources,
    )
