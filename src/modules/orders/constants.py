"""Order domain constants.

Status vocabularies for the order and its payment, plus the states from
which a shopper may still cancel.  Admins may set any status.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    CARD = "card", "Card"
    PAYPAL = "paypal", "PayPal"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"


USER_CANCELLABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED}
)

# Webhook success only confirms orders still awaiting payment.
PAYMENT_CONFIRMABLE_STATES: frozenset[str] = frozenset({OrderStatus.PENDING})
PAYMENT_FAILABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED}
)

# A charge and its recomputed total may differ by at most this much.
AMOUNT_TOLERANCE = "0.01"

ORDER_NUMBER_MAX_RETRIES = 5
