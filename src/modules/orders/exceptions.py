"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
HTTP responses.  Catalog errors (``ProductNotFound``,
``InsufficientInventory``) propagate from checkout unchanged.
"""

from __future__ import annotations

from decimal import Decimal


class OrderNotFound(Exception):
    """The order does not exist or belongs to another user."""


class EmptyCart(Exception):
    """Checkout was attempted without a cart or with no items in it."""


class InvalidTransition(Exception):
    """The order's current status does not allow the requested change."""


class AmountMismatch(Exception):
    """The charged amount differs from the recomputed order total."""

    def __init__(self, charged: Decimal, expected: Decimal) -> None:
        self.charged = charged
        self.expected = expected
        super().__init__(
            f"Payment amount {charged} does not match order total {expected}."
        )


class PaymentNotCompleted(Exception):
    """The payment intent has not succeeded."""

    def __init__(self, payment_status: str) -> None:
        self.payment_status = payment_status
        super().__init__(f"Payment not successful (status: {payment_status}).")


class OrderNotRefundable(Exception):
    """The order has no captured payment to refund."""
