"""Inventory REST service client with fixed-delay retry."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from inventory_tracker.domain.items import InventoryItem

TIMEOUT_MESSAGE = "Request timed out. Please check if the server is running."
NETWORK_MESSAGE = (
    "Network error. Please check your connection and if the server is running."
)

_logger = logging.getLogger(__name__)


class RequestError(Exception):
    """Inventory service call failed after all retries."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def user_message(self) -> str:
        """Return the form-style message shown to users."""
        status = self.status_code if self.status_code is not None else "unknown"
        return f"{self.detail or self.message} (Status: {status})"


class InventoryClient(Protocol):
    """Interface for inventory service interactions."""

    async def list_items(self) -> list[InventoryItem]:
        """Return all inventory records in server order."""

    async def get_item_by_barcode(self, barcode: str) -> InventoryItem:
        """Return the record for a barcode."""

    async def create_item(self, payload: dict[str, object]) -> InventoryItem:
        """Create a record and return it with its server-assigned id."""

    async def update_item(
        self, item_id: str, payload: dict[str, object]
    ) -> InventoryItem:
        """Apply a partial update and return the full record."""

    async def delete_item(self, item_id: str) -> None:
        """Delete a record by id."""


@dataclass
class HttpxInventoryClient(InventoryClient):
    """HTTPX-backed inventory client.

    Every call makes up to ``retry_attempts + 1`` attempts, sleeping
    ``retry_delay_seconds`` between them whatever the failure was. Requests
    and responses are logged through httpx event hooks.
    """

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 5.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        hooks = self.http_client.event_hooks
        self.http_client.event_hooks = {
            "request": [*hooks["request"], _log_request],
            "response": [*hooks["response"], _log_response],
        }

    @classmethod
    def create(
        cls,
        base_url: str,
        *,
        timeout_seconds: float = 5.0,
        retry_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
    ) -> "HttpxInventoryClient":
        """Create an inventory client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(
                headers={"Content-Type": "application/json"}
            ),
            timeout_seconds=timeout_seconds,
            retry_attempts=retry_attempts,
            retry_delay_seconds=retry_delay_seconds,
        )

    async def list_items(self) -> list[InventoryItem]:
        """Fetch every inventory record."""
        payload = await self._request("GET", self.base_url)
        if not isinstance(payload, list):
            raise RequestError("Unexpected response: expected a list of items")
        return [InventoryItem.model_validate(row) for row in payload]

    async def get_item_by_barcode(self, barcode: str) -> InventoryItem:
        """Fetch a single record by barcode."""
        payload = await self._request("GET", self._url(barcode))
        return InventoryItem.model_validate(payload)

    async def create_item(self, payload: dict[str, object]) -> InventoryItem:
        """Create a record; any id in the payload is dropped."""
        body = {key: value for key, value in payload.items() if key != "id"}
        created = await self._request("POST", self.base_url, json=body)
        return InventoryItem.model_validate(created)

    async def update_item(
        self, item_id: str, payload: dict[str, object]
    ) -> InventoryItem:
        """Send only the changed fields for a record."""
        updated = await self._request("PUT", self._url(item_id), json=payload)
        return InventoryItem.model_validate(updated)

    async def delete_item(self, item_id: str) -> None:
        """Delete a record by id."""
        await self._request("DELETE", self._url(item_id))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _url(self, segment: str) -> str:
        return f"{self.base_url}/{quote(segment, safe='')}"

    async def _request(
        self, method: str, url: str, json: dict[str, object] | None = None
    ) -> object:
        """Send a request, retrying every failure with a fixed delay."""
        attempt = 0
        while True:
            try:
                response = await self.http_client.request(
                    method, url, json=json, timeout=self.timeout_seconds
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                if attempt >= self.retry_attempts:
                    error = _normalize_error(exc)
                    _logger.error(
                        "Final error after retries: %s %s: %s", method, url, error
                    )
                    raise error from exc
                attempt += 1
                _logger.warning(
                    "Retrying request (%s/%s) %s %s: %s",
                    attempt,
                    self.retry_attempts,
                    method,
                    url,
                    exc,
                )
                await asyncio.sleep(self.retry_delay_seconds)
                continue
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise RequestError(
                    f"Invalid response body: {exc}", status_code=response.status_code
                ) from exc


def _normalize_error(exc: httpx.HTTPError) -> RequestError:
    """Map an httpx failure to a user-readable request error."""
    if isinstance(exc, httpx.TimeoutException):
        return RequestError(TIMEOUT_MESSAGE)
    if isinstance(exc, httpx.HTTPStatusError):
        return RequestError(
            str(exc),
            status_code=exc.response.status_code,
            detail=_error_detail(exc.response),
        )
    return RequestError(NETWORK_MESSAGE)


def _error_detail(response: httpx.Response) -> str | None:
    """Extract the server's message or error field, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    detail = body.get("message") or body.get("error")
    return str(detail) if detail else None


async def _log_request(request: httpx.Request) -> None:
    _logger.info("Making request to: %s %s", request.method, request.url)


async def _log_response(response: httpx.Response) -> None:
    _logger.info(
        "Response received: %s %s -> %s",
        response.request.method,
        response.request.url,
        response.status_code,
    )
