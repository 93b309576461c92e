"""Cart repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Optional, Tuple

if TYPE_CHECKING:
    from modules.carts.models import Cart, CartItem
    from modules.catalog.models import Product


class ICartRepository(ABC):
    """Repository contract for the Cart aggregate (Cart + CartItems).

    Every mutating method leaves ``total_amount`` consistent with the lines.
    The ``*_for_update`` readers lock the cart row so mutations for one user
    are serialized.
    """

    @abstractmethod
    def get_by_user(self, user_id: Any) -> Optional[Cart]:
        """Cart with its lines and products preloaded, or ``None``."""

    @abstractmethod
    def get_for_update(self, user_id: Any) -> Optional[Cart]:
        """Locked cart, or ``None`` when the user has none."""

    @abstractmethod
    def get_or_create_for_update(self, user_id: Any) -> Cart:
        """Locked cart, created empty on first use."""

    @abstractmethod
    def get_item(self, cart: Cart, product_id: Any) -> Optional[CartItem]:
        """The line for *product_id*, or ``None``."""

    @abstractmethod
    def upsert_item(
        self, cart: Cart, product: Product, quantity: int, price: Decimal
    ) -> CartItem:
        """Set the line for *product* to *quantity* at *price*."""

    @abstractmethod
    def remove_item(self, cart: Cart, product_id: Any) -> bool:
        """Delete the line for *product_id*; ``False`` if there was none."""

    @abstractmethod
    def replace_items(
        self, cart: Cart, items: Iterable[Tuple[Product, int, Decimal]] = ()
    ) -> Cart:
        """Swap all lines for *items* (``(product, quantity, price)``); empty clears."""
