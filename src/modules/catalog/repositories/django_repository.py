"""Django ORM implementation of the Product repository.

Inventory changes are single ``UPDATE`` statements using ``F()``
expressions, so concurrent checkouts, cancellations and admin
adjustments never overwrite each other.  The decrement carries its own
guard (``inventory >= quantity``), which makes it a compare-and-swap:
two buyers racing for the last unit cannot both succeed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.catalog.models import Product
from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """Lazy queryset for the API layer's filter and pagination backends."""
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return list(self.queryset(filters))

    def categories(self) -> List[str]:
        return list(
            Product.objects.filter(is_active=True)
            .exclude(category="")
            .order_by("category")
            .values_list("category", flat=True)
            .distinct()
        )

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def update_fields(self, id: str, fields: Dict[str, Any]) -> Optional[Product]:
        try:
            updated = Product.objects.filter(id=id).update(
                **fields, updated_at=timezone.now()
            )
        except (ValueError, ValidationError):
            return None
        if not updated:
            return None
        logger.info("product.updated", product_id=str(id), fields=sorted(fields))
        return self.get_by_id(id)

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def decrement_inventory(self, id: Any, quantity: int) -> bool:
        updated = Product.objects.filter(
            id=id,
            is_active=True,
            in_stock=True,
            inventory__gte=quantity,
        ).update(inventory=F("inventory") - quantity, updated_at=timezone.now())
        logger.info(
            "product.inventory_decremented" if updated else "product.inventory_rejected",
            product_id=str(id),
            quantity=quantity,
        )
        return updated == 1

    def increment_inventory(self, id: Any, quantity: int) -> bool:
        updated = Product.objects.filter(id=id).update(
            inventory=F("inventory") + quantity, updated_at=timezone.now()
        )
        logger.info(
            "product.inventory_incremented",
            product_id=str(id),
            quantity=quantity,
            found=bool(updated),
        )
        return updated == 1

    def adjust_inventory(self, id: Any, delta: int) -> bool:
        try:
            updated = Product.objects.filter(
                id=id, inventory__gte=max(-delta, 0)
            ).update(inventory=F("inventory") + delta, updated_at=timezone.now())
        except (ValueError, ValidationError):
            return False
        logger.info(
            "product.inventory_adjusted",
            product_id=str(id),
            delta=delta,
            applied=bool(updated),
        )
        return updated == 1
