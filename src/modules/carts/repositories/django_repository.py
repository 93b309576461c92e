"""Django ORM implementation of the Cart repository.

``select_for_update`` on the cart row serializes concurrent mutations
for the same user (two tabs adding the same product cannot both insert
a line; the unique constraint would reject the loser anyway).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.carts.models import Cart, CartItem
from modules.carts.repositories.interfaces import ICartRepository
from modules.catalog.models import Product

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_user(self, user_id: Any) -> Optional[Cart]:
        return (
            Cart.objects.prefetch_related("items__product")
            .filter(user_id=user_id)
            .first()
        )

    def get_for_update(self, user_id: Any) -> Optional[Cart]:
        return Cart.objects.select_for_update().filter(user_id=user_id).first()

    @transaction.atomic
    def get_or_create_for_update(self, user_id: Any) -> Cart:
        cart, created = Cart.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("cart.created", user_id=str(user_id), cart_id=str(cart.id))
            return cart
        return Cart.objects.select_for_update().get(pk=cart.pk)

    def get_item(self, cart: Cart, product_id: Any) -> Optional[CartItem]:
        try:
            return (
                CartItem.objects.select_related("product")
                .filter(cart=cart, product_id=product_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def upsert_item(
        self, cart: Cart, product: Product, quantity: int, price: Decimal
    ) -> CartItem:
        item, _ = CartItem.objects.update_or_create(
            cart=cart,
            product=product,
            defaults={"quantity": quantity, "price": price},
        )
        cart.recalculate_total()
        return item

    @transaction.atomic
    def remove_item(self, cart: Cart, product_id: Any) -> bool:
        try:
            deleted, _ = CartItem.objects.filter(
                cart=cart, product_id=product_id
            ).delete()
        except (ValueError, ValidationError):
            deleted = 0
        cart.recalculate_total()
        return bool(deleted)

    @transaction.atomic
    def replace_items(
        self, cart: Cart, items: Iterable[Tuple[Product, int, Decimal]] = ()
    ) -> Cart:
        CartItem.objects.filter(cart=cart).delete()
        CartItem.objects.bulk_create(
            [
                CartItem(cart=cart, product=product, quantity=quantity, price=price)
                for product, quantity, price in items
            ]
        )
        cart.recalculate_total()
        return cart
