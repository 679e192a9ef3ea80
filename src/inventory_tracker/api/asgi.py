"""ASGI entrypoint for the inventory tracker API."""

from inventory_tracker.api.app import create_app
from inventory_tracker.containers import build_container

app = create_app(build_container())
