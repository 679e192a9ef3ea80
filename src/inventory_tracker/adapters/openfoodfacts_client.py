"""Open Food Facts product image lookup."""

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

_logger = logging.getLogger(__name__)


class ProductImageClient(Protocol):
    """Interface for best-effort product photo lookups."""

    async def lookup_image(self, barcode: str) -> str | None:
        """Return a product image URL for the barcode, or None."""


@dataclass
class HttpxOpenFoodFactsClient(ProductImageClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, base_url: str = "https://world.openfoodfacts.org/api/v0"
    ) -> "HttpxOpenFoodFactsClient":
        """Create a catalog client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def lookup_image(self, barcode: str) -> str | None:
        """Look up a product photo; every failure degrades to None."""
        url = f"{self.base_url}/product/{quote(barcode, safe='')}.json"
        try:
            response = await self.http_client.get(url, timeout=10)
            response.raise_for_status()
            payload = response.json()
            if payload.get("status") != 1:
                _logger.info("Product not found: barcode=%s", barcode)
                return None
            product = payload["product"]
            image_url = product.get("image_front_url") or product.get("image_url")
        except Exception:
            _logger.exception(
                "Error fetching product image", extra={"barcode": barcode}
            )
            return None
        return str(image_url) if image_url else None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
