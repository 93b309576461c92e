"""Cart and CartItem models.

Business rules implemented:
- One cart per user, created lazily on the first add.
- At most one line per (cart, product); re-adding bumps the quantity.
- ``CartItem.price`` is a snapshot taken when the line is added and
  refreshed only when the quantity is explicitly updated.
- ``Cart.total_amount`` is derived from the lines and recomputed after
  every mutation; nothing else writes it.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

CENT = Decimal("0.01")


class Cart(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart",
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        db_table = "carts"

    def compute_total(self) -> Decimal:
        total = sum((item.line_total for item in self.items.all()), Decimal("0"))
        return total.quantize(CENT, rounding=ROUND_HALF_UP)

    def recalculate_total(self) -> Decimal:
        """Recompute and persist ``total_amount`` from the current lines."""
        self.total_amount = self.compute_total()
        self.save(update_fields=["total_amount"])
        return self.total_amount

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items.all())

    def __str__(self) -> str:
        return f"Cart({self.user_id}) ${self.total_amount}"


class CartItem(BaseModel):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"], name="cart_items_unique_product"
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} @ {self.price}"
