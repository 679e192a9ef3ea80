"""Expiry dashboard service."""

import logging
from dataclasses import dataclass
from datetime import date

from inventory_tracker.adapters.inventory_client import InventoryClient
from inventory_tracker.domain.expiry import (
    ExpiringItem,
    days_until,
    expiry_status,
    parse_expiry_date,
)
from inventory_tracker.domain.items import InventoryItem

_logger = logging.getLogger(__name__)


@dataclass
class DashboardService:
    """Lists items by how soon they expire."""

    client: InventoryClient

    async def expiring_items(self, today: date | None = None) -> list[ExpiringItem]:
        """Return items with an expiry date, soonest first."""
        items = await self.client.list_items()
        return build_expiry_report(items, today or date.today())


def build_expiry_report(
    items: list[InventoryItem], today: date
) -> list[ExpiringItem]:
    """Annotate and sort items that carry an expiry date."""
    report: list[ExpiringItem] = []
    for item in items:
        if not item.expiry_date:
            continue
        expiry_date = parse_expiry_date(item.expiry_date)
        if expiry_date is None:
            _logger.warning(
                "Skipping item %s with invalid expiry date %r",
                item.id,
                item.expiry_date,
            )
            continue
        remaining = days_until(expiry_date, today)
        report.append(
            ExpiringItem(
                item=item,
                expiry_date=expiry_date,
                days_until_expiry=remaining,
                status=expiry_status(remaining),
            )
        )
    report.sort(key=lambda entry: entry.expiry_date)
    return report
