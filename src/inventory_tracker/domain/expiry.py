"""Domain models for the expiry dashboard."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from inventory_tracker.domain.items import InventoryItem

CRITICAL_DAYS = 7
WARNING_DAYS = 30


class ExpiryStatus(StrEnum):
    """Urgency bucket for an item's expiry date."""

    EXPIRED = "expired"
    CRITICAL = "critical"
    WARNING = "warning"
    GOOD = "good"


@dataclass(frozen=True)
class ExpiringItem:
    """Inventory item annotated with its expiry urgency."""

    item: InventoryItem
    expiry_date: date
    days_until_expiry: int
    status: ExpiryStatus


def parse_expiry_date(raw: str | None) -> date | None:
    """Parse a date or ISO timestamp string, returning None when invalid."""
    if not raw:
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def days_until(expiry_date: date, today: date) -> int:
    """Whole days from today until the expiry date; negative once past."""
    return (expiry_date - today).days


def expiry_status(days_until_expiry: int) -> ExpiryStatus:
    """Classify the number of days left before expiry."""
    if days_until_expiry < 0:
        return ExpiryStatus.EXPIRED
    if days_until_expiry <= CRITICAL_DAYS:
        return ExpiryStatus.CRITICAL
    if days_until_expiry <= WARNING_DAYS:
        return ExpiryStatus.WARNING
    return ExpiryStatus.GOOD
