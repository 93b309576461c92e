"""Wiring of ``OrderService`` with its Django repositories and Stripe gateway."""

from __future__ import annotations

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.gateway import get_payment_gateway


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        payment_gateway=get_payment_gateway(),
    )
