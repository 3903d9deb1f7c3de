"""
Cart-related exceptions.
"""

from .base import LmdClientException


class CartException(LmdClientException):
    """Base exception for cart-related errors."""
    pass


class InvalidCartItemException(CartException):
    """Raised when a cart line is malformed (missing item-detail, non-positive quantity)."""

    def __init__(self, reason: str, itemdetails_id: int | None = None):
        super().__init__(
            f"Invalid cart item: {reason}",
            details={'itemdetails_id': itemdetails_id, 'reason': reason}
        )
        self.itemdetails_id = itemdetails_id
        self.reason = reason


class CartNotProvisionedException(CartException):
    """Raised when the server could not create or return a cart for the customer."""

    def __init__(self, customer_id: int):
        super().__init__(
            f"Could not provision a cart for customer {customer_id}",
            details={'customer_id': customer_id}
        )
        self.customer_id = customer_id
