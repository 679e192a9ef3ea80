"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inventory_tracker.adapters.inventory_client import RequestError
from inventory_tracker.api.schemas import ItemForm, draft_payload
from inventory_tracker.app_logging import configure_logging
from inventory_tracker.containers import AppContainer
from inventory_tracker.domain.expiry import ExpiringItem
from inventory_tracker.services.item_forms import ValidationError
from inventory_tracker.services.scanner import ScannerError

DELETE_CONFIRMATION_MESSAGE = "Are you sure you want to delete this item?"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(RequestError)
    async def request_error_handler(
        request: Request, exc: RequestError
    ) -> JSONResponse:
        logger.error("Inventory request failed: %s", exc)
        return JSONResponse(status_code=502, content={"error": exc.user_message()})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.exception_handler(ScannerError)
    async def scanner_error_handler(
        request: Request, exc: ScannerError
    ) -> JSONResponse:
        return JSONResponse(status_code=503, content={"error": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/items")
    async def list_items(request: Request) -> dict[str, object]:
        """Return the inventory table."""
        state_container: AppContainer = request.app.state.container
        items = await state_container.inventory_service.refresh()
        return {"items": [item.to_wire() for item in items]}

    @app.get("/api/items/barcode/{barcode}")
    async def item_by_barcode(barcode: str, request: Request) -> dict[str, object]:
        """Return the stored item for a barcode."""
        state_container: AppContainer = request.app.state.container
        item = await state_container.inventory_service.find_by_barcode(barcode)
        return item.to_wire()

    @app.post("/api/items", status_code=201)
    async def create_item(form: ItemForm, request: Request) -> dict[str, object]:
        """Create an item from the add form."""
        state_container: AppContainer = request.app.state.container
        created = await state_container.inventory_service.add_item(form.to_draft())
        return created.to_wire()

    @app.put("/api/items/{item_id}")
    async def update_item(
        item_id: str, form: ItemForm, request: Request
    ) -> dict[str, object]:
        """Save the changed fields of the edit form."""
        state_container: AppContainer = request.app.state.container
        service = state_container.inventory_service
        draft = form.to_draft(await service.edit_form(item_id))
        updated = await service.edit_item(item_id, draft)
        return updated.to_wire()

    @app.delete("/api/items/{item_id}", response_model=None)
    async def delete_item(
        item_id: str, request: Request, confirm: bool = False
    ) -> dict[str, str] | JSONResponse:
        """Delete an item after explicit confirmation."""
        state_container: AppContainer = request.app.state.container
        deleted = await state_container.inventory_service.delete_item(
            item_id, confirmed=confirm
        )
        if not deleted:
            return JSONResponse(
                status_code=409, content={"error": DELETE_CONFIRMATION_MESSAGE}
            )
        return {"status": "deleted"}

    @app.get("/api/dashboard")
    async def dashboard(request: Request) -> dict[str, object]:
        """Return items with expiry dates, soonest first."""
        state_container: AppContainer = request.app.state.container
        entries = await state_container.dashboard_service.expiring_items()
        return {"items": [_expiring_payload(entry) for entry in entries]}

    @app.get("/api/store")
    async def store(request: Request) -> dict[str, object]:
        """Return storefront product cards."""
        state_container: AppContainer = request.app.state.container
        products = await state_container.store_service.products()
        return {"products": [asdict(product) for product in products]}

    @app.get("/api/products/{barcode}/image")
    async def product_image(barcode: str, request: Request) -> dict[str, str | None]:
        """Look up a product photo for a barcode."""
        state_container: AppContainer = request.app.state.container
        photo_url = await state_container.inventory_service.lookup_photo(barcode)
        return {"photoURL": photo_url}

    @app.get("/api/drafts")
    async def new_item_draft(
        request: Request, barcode: str | None = None
    ) -> dict[str, object]:
        """Prefill the add form from a barcode or the last scanned one."""
        state_container: AppContainer = request.app.state.container
        resolved = barcode or state_container.scan_inbox.latest()
        if not resolved:
            return draft_payload(ItemForm().to_draft())
        draft = await state_container.inventory_service.prefill_draft(resolved)
        return draft_payload(draft)

    @app.get("/api/scanner")
    async def scanner_status(request: Request) -> dict[str, object]:
        """Return the scanner state and the last decoded barcode."""
        return _scanner_payload(request.app.state.container)

    @app.post("/api/scanner/start")
    async def start_scanner(request: Request) -> dict[str, object]:
        """Open the camera and start decoding barcodes."""
        state_container: AppContainer = request.app.state.container
        state_container.scan_inbox.clear()
        await state_container.scanner.start(state_container.scan_inbox.record)
        return _scanner_payload(state_container)

    @app.post("/api/scanner/stop")
    async def stop_scanner(request: Request) -> dict[str, object]:
        """Stop scanning and release the camera."""
        state_container: AppContainer = request.app.state.container
        await state_container.scanner.stop()
        return _scanner_payload(state_container)

    return app


def _scanner_payload(container: AppContainer) -> dict[str, object]:
    """Describe the scanner for the client."""
    return {
        "state": container.scanner.state.value,
        "error": container.scanner.error_message,
        "barcode": container.scan_inbox.latest(),
    }


def _expiring_payload(entry: ExpiringItem) -> dict[str, object]:
    """Format a dashboard row."""
    payload = entry.item.to_wire()
    payload["daysUntilExpiry"] = entry.days_until_expiry
    payload["status"] = entry.status.value
    return payload
