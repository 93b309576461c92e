"""Product repository interface.

Extends ``IRepository[Product]`` with the inventory primitives the cart
and order services rely on.  Inventory is only ever changed relative to
its current value, in a single statement.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def save(self, entity: Product) -> Product:
        """Persist a new product."""

    @abstractmethod
    def update_fields(self, id: str, fields: Dict[str, Any]) -> Optional[Product]:
        """Write only *fields* on the product; ``None`` if it does not exist."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Products matching ORM-style *filters*."""

    @abstractmethod
    def categories(self) -> List[str]:
        """Distinct non-empty categories of active products, sorted."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def decrement_inventory(self, id: Any, quantity: int) -> bool:
        """Take *quantity* units if the product is purchasable and has them.

        Returns ``False`` (and changes nothing) otherwise.
        """

    @abstractmethod
    def increment_inventory(self, id: Any, quantity: int) -> bool:
        """Return *quantity* units to inventory; ``False`` if the product is gone."""

    @abstractmethod
    def adjust_inventory(self, id: Any, delta: int) -> bool:
        """Apply an admin stock correction; ``False`` if it would go negative."""
