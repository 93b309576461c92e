"""Catalog service layer (admin product management and public reads)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.catalog.exceptions import (
    InsufficientInventory,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.models import Product

if TYPE_CHECKING:
    from modules.catalog.dtos import (
        AdjustInventoryDTO,
        CreateProductDTO,
        UpdateProductDTO,
    )
    from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CatalogService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection.
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands (admin)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a product.

        Raises:
            ProductAlreadyExists: the SKU is already taken.
        """
        if dto.sku and self._repo.get_by_sku(dto.sku):
            logger.warning("product.duplicate_sku", sku=dto.sku)
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            title=dto.title,
            description=dto.description,
            category=dto.category,
            sku=dto.sku,
            price=dto.price,
            inventory=dto.inventory,
            in_stock=dto.in_stock,
        )
        return self._repo.save(product)

    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Write the supplied fields only.

        Untouched fields (inventory in particular) are never rewritten, so
        an edit cannot clobber a concurrent checkout's decrement.

        Raises:
            ProductNotFound: the product does not exist.
        """
        fields = dto.changed_fields()
        product = (
            self._repo.update_fields(id, fields) if fields else self._repo.get_by_id(id)
        )
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def adjust_inventory(self, id: str, dto: AdjustInventoryDTO) -> Product:
        """Apply a relative stock correction.

        Raises:
            ProductNotFound: the product does not exist.
            InsufficientInventory: a negative delta exceeds current inventory.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        if not self._repo.adjust_inventory(product.id, dto.delta):
            current = self._repo.get_by_id(id) or product
            raise InsufficientInventory(
                product_id=current.id,
                title=current.title,
                requested=-dto.delta,
                available=current.inventory,
            )
        return self._repo.get_by_id(id)

    def deactivate_product(self, id: str) -> Product:
        """Soft-delete: the row stays so past orders keep resolving it."""
        product = self._repo.update_fields(id, {"is_active": False})
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        logger.info("product.deactivated", product_id=str(id))
        return product

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(
        self, filters: Optional[Dict[str, Any]] = None, include_inactive: bool = False
    ) -> List[Product]:
        filters = dict(filters or {})
        if not include_inactive:
            filters["is_active"] = True
        return self._repo.list(filters)

    def list_categories(self) -> List[str]:
        return self._repo.categories()

    def get_product(self, id: str, include_inactive: bool = False) -> Product:
        """Raises ``ProductNotFound`` for unknown (or, for shoppers, inactive) products."""
        product = self._repo.get_by_id(id)
        if not product or (not include_inactive and not product.is_active):
            raise ProductNotFound(f"Product {id} not found.")
        return product
