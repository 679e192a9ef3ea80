"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    inventory_api_url: str = "http://localhost:3000/api/inventory"
    request_timeout_seconds: float = 5.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0
    product_catalog_url: str = "https://world.openfoodfacts.org/api/v0"
    camera_backend: str = "none"
    camera_enumeration_supported: bool = True
    camera_max_devices: int = 4
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_camera_backend(raw: str | None) -> str | None:
    """Normalize the configured camera backend name."""
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    if cleaned in {"", "none", "off"}:
        return None
    return cleaned
