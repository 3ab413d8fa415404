"""Models package for database entities."""

from models.enums import DealStatus, DiscountType, TERMINAL_STATUSES
from models.deal import Deal, LineItem

__all__ = [
    "DealStatus",
    "DiscountType",
    "TERMINAL_STATUSES",
    "Deal",
    "LineItem",
]
