from enum import Enum


class DealStatus(str, Enum):
    """Quote lifecycle statuses."""
    DRAFT = "Draft"
    SENT = "Sent"
    VIEWED = "Viewed"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    CONVERTED = "Converted"


class DiscountType(str, Enum):
    """Deal-level discount calculation methods."""
    PERCENTAGE = "Percentage"
    FIXED = "Fixed"


TERMINAL_STATUSES = frozenset({
    DealStatus.ACCEPTED,
    DealStatus.REJECTED,
    DealStatus.EXPIRED,
    DealStatus.CONVERTED,
})
