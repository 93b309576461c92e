"""Product model: price, inventory and purchasability flags.

Business rules implemented:
- Price is never negative.
- Inventory is never negative (DB check constraint + conditional updates
  in the repository).
- ``in_stock=False`` or ``is_active=False`` makes a product
  unpurchasable regardless of its inventory count.
- ``is_active`` is the soft-delete flag: rows are kept so historical
  order lines stay resolvable.
"""

from __future__ import annotations

import secrets
from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog product.

    ``sku`` is normalised to uppercase and auto-generated on first save
    when the admin does not supply one (format ``PRD-XXXXXXXX``).
    """

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    sku = models.CharField(max_length=64, unique=True, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    inventory = models.PositiveIntegerField(default=0)
    in_stock = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "in_stock"], name="products_avail_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(inventory__gte=0),
                name="products_inventory_non_negative",
            ),
        ]

    @property
    def is_purchasable(self) -> bool:
        return self.is_active and self.in_stock

    @staticmethod
    def generate_sku() -> str:
        return f"PRD-{secrets.token_hex(4).upper()}"

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})
        if self.inventory is not None and self.inventory < 0:
            raise ValidationError({"inventory": "Inventory cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        self.sku = (self.sku or self.generate_sku()).strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                title=self.title,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.title}"
