"""Order, OrderLine and OrderStatusHistory models.

Business rules implemented:
- Orders are created from a cart snapshot; lines copy the cart price and
  the product title so later catalog edits never change past orders.
- ``order_number`` is generated once (``ORD-YYYYMMDD-XXXXXX``) and unique.
- Totals are computed by the service and stored; the API never accepts them.
- After creation only ``order_status``, ``tracking_number``,
  ``payment_status`` and ``transaction_id`` change.
- Every status change appends an ``OrderStatusHistory`` row.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    USER_CANCELLABLE_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def _money_field(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), **kwargs
    )


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    The UUIDv7 ``id`` is used for API lookups; ``order_number`` is the
    human-readable reference shown to shoppers.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Shipping address snapshot
    shipping_name = models.CharField(max_length=255)
    shipping_email = models.EmailField()
    shipping_phone = models.CharField(max_length=32)
    shipping_street = models.CharField(max_length=255)
    shipping_city = models.CharField(max_length=100)
    shipping_state = models.CharField(max_length=100)
    shipping_zip_code = models.CharField(max_length=20)
    shipping_country = models.CharField(max_length=100)

    # Payment info
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CARD
    )
    transaction_id = models.CharField(max_length=255, blank=True, default="")
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )

    subtotal = _money_field()
    tax = _money_field()
    shipping = _money_field()
    total = _money_field()

    order_status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order_status"], name="orders_status_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_idx"),
            models.Index(fields=["transaction_id"], name="orders_transaction_idx"),
        ]

    @property
    def is_user_cancellable(self) -> bool:
        return self.order_status in USER_CANCELLABLE_STATES

    @property
    def shipping_address(self) -> dict:
        return {
            "name": self.shipping_name,
            "email": self.shipping_email,
            "phone": self.shipping_phone,
            "street": self.shipping_street,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "zip_code": self.shipping_zip_code,
            "country": self.shipping_country,
        }

    @staticmethod
    def generate_order_number() -> str:
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.order_status})"


class OrderLine(BaseModel):
    """A purchased product at its checkout-time price and title."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="lines")
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )
    title = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.unit_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.title} x{self.quantity} (${self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status changes.

    ``user`` is ``None`` for changes made by the system (payment webhooks).
    """

    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="status_history"
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20, choices=OrderStatus.choices, null=True, blank=True
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.old_status} -> {self.new_status}"
