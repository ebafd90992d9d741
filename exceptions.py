"""Domain errors raised by the bakery services.

Routers translate these into HTTP responses; services never deal with
status codes.
"""
from decimal import Decimal
from typing import Optional


class BakeryError(Exception):
    """Base class for all domain errors."""


class ValidationError(BakeryError):
    """Malformed or missing input."""


class ProductNotFound(BakeryError):
    """A product id did not resolve to a catalog entry."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(BakeryError):
    """Requested quantity exceeds the quantity on hand.

    ``transaction_id`` is set when the shortage is found after payment.
    """

    def __init__(self, product_id: str, product_name: str, requested: int, available: int,
                 transaction_id: Optional[str] = None):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        self.transaction_id = transaction_id
        super().__init__(
            f"Insufficient stock for product {product_name}: "
            f"requested {requested}, available {available}"
        )


class PaymentRejected(BakeryError):
    """The active payment strategy refused the payment."""


class OrderCommitFailed(BakeryError):
    """The order could not be written after payment succeeded.

    Carries the payment transaction id, since the payment may need to be
    reconciled by hand.
    """

    def __init__(self, message: str, transaction_id: Optional[str] = None,
                 amount: Optional[Decimal] = None):
        self.transaction_id = transaction_id
        self.amount = amount
        super().__init__(message)


class OrderNotFound(BakeryError):
    """An order id did not resolve."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class AuthError(BakeryError):
    """Registration or login failed."""
