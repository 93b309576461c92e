"""Cart service layer.

Every mutation runs in one transaction holding the cart row lock, goes
through ``ensure_purchasable`` for anything that adds units, and leaves
``total_amount`` recomputed by the repository.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import transaction

from modules.carts.dtos import CartOutputDTO
from modules.carts.exceptions import CartItemNotFound, CartNotFound
from modules.catalog.rules import ensure_purchasable

if TYPE_CHECKING:
    from modules.carts.dtos import AddCartItemDTO, UpdateCartItemDTO
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for the per-user cart.

    Receives repositories via constructor injection.
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_item(self, user_id: Any, dto: AddCartItemDTO) -> CartOutputDTO:
        """Add units of a product, merging with an existing line.

        Raises:
            ProductNotFound: product missing, inactive or out of stock.
            InsufficientInventory: the resulting line quantity exceeds inventory.
        """
        log = logger.bind(user_id=str(user_id), product_id=str(dto.product_id))
        product = ensure_purchasable(
            self._product_repo.get_by_id(dto.product_id), dto.quantity
        )

        cart = self._cart_repo.get_or_create_for_update(user_id)
        existing = self._cart_repo.get_item(cart, product.id)
        if existing is not None:
            quantity = existing.quantity + dto.quantity
            ensure_purchasable(product, quantity)
            self._cart_repo.upsert_item(cart, product, quantity, existing.price)
        else:
            quantity = dto.quantity
            self._cart_repo.upsert_item(cart, product, quantity, product.price)

        log.info("cart.item_added", added=dto.quantity, line_quantity=quantity)
        return self.get_cart(user_id)

    @transaction.atomic
    def update_item(self, user_id: Any, dto: UpdateCartItemDTO) -> CartOutputDTO:
        """Set a line's quantity and refresh its price; 0 removes the line.

        Raises:
            CartNotFound: the user has no cart.
            CartItemNotFound: the product is not in the cart.
            ProductNotFound / InsufficientInventory: the new quantity cannot be bought.
        """
        log = logger.bind(user_id=str(user_id), product_id=str(dto.product_id))
        cart = self._cart_repo.get_for_update(user_id)
        if cart is None:
            raise CartNotFound("Cart not found.")

        if dto.quantity == 0:
            self._cart_repo.remove_item(cart, dto.product_id)
            log.info("cart.item_removed")
            return self.get_cart(user_id)

        if self._cart_repo.get_item(cart, dto.product_id) is None:
            raise CartItemNotFound("Item not found in cart.")

        product = ensure_purchasable(
            self._product_repo.get_by_id(dto.product_id), dto.quantity
        )
        self._cart_repo.upsert_item(cart, product, dto.quantity, product.price)
        log.info("cart.item_updated", quantity=dto.quantity)
        return self.get_cart(user_id)

    @transaction.atomic
    def remove_item(self, user_id: Any, product_id: Any) -> CartOutputDTO:
        cart = self._cart_repo.get_for_update(user_id)
        if cart is None:
            return CartOutputDTO.empty(user_id)
        removed = self._cart_repo.remove_item(cart, product_id)
        logger.info(
            "cart.item_removed",
            user_id=str(user_id),
            product_id=str(product_id),
            removed=removed,
        )
        return self.get_cart(user_id)

    @transaction.atomic
    def clear(self, user_id: Any) -> CartOutputDTO:
        cart = self._cart_repo.get_for_update(user_id)
        if cart is None:
            return CartOutputDTO.empty(user_id)
        self._cart_repo.replace_items(cart, [])
        logger.info("cart.cleared", user_id=str(user_id))
        return self.get_cart(user_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, user_id: Any) -> CartOutputDTO:
        cart = self._cart_repo.get_by_user(user_id)
        if cart is None:
            return CartOutputDTO.empty(user_id)
        return CartOutputDTO.from_entity(cart)

    def item_count(self, user_id: Any) -> int:
        return self.get_cart(user_id).item_count
