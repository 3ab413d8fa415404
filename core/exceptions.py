"""Domain errors raised by the deal pricing and quote lifecycle services."""


class DealError(Exception):
    """Base class for every deal/quote domain error."""
    pass


class InvalidLineItem(DealError, ValueError):
    """Raised when a line item has a negative quantity/price or no description."""
    pass


class InvalidSignature(DealError, ValueError):
    """Raised when a signature submission lacks name, email or image."""
    pass


class InvalidOrExpiredToken(DealError):
    """Raised when a signature token fails verification or is past its expiry."""
    pass


class DealNotFound(DealError, LookupError):
    """Raised when a referenced deal is absent at the persistence boundary."""

    def __init__(self, deal_id: str):
        super().__init__(f"Deal not found: {deal_id}")
        self.deal_id = deal_id


class AlreadySigned(DealError):
    """Raised when a signature is applied to a deal that is already accepted."""
    pass


class InvalidStatusTransition(DealError):
    """Raised when a lifecycle event is not allowed from the current status."""

    def __init__(self, deal_id: str, from_status: str, to_status: str):
        super().__init__(
            f"Deal {deal_id} cannot go from '{from_status}' to '{to_status}'"
        )
        self.deal_id = deal_id
        self.from_status = from_status
        self.to_status = to_status


class DealLocked(DealError):
    """Raised when pricing fields of a deal in a terminal state are edited."""
    pass


class QuoteNumberCollision(DealError):
    """Raised when a unique quote number could not be allocated."""
    pass


class DeliveryError(DealError):
    """Raised by email senders when a message could not be delivered."""
    pass
