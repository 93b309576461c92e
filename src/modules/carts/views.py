"""Cart API views.

All endpoints act on the authenticated user's own cart.
"""

from __future__ import annotations

from typing import Any, Dict

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.carts.dtos import AddCartItemDTO, CartOutputDTO, UpdateCartItemDTO
from modules.carts.exceptions import CartItemNotFound, CartNotFound
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import AddCartItemSerializer, UpdateCartItemSerializer
from modules.carts.services import CartService
from modules.catalog.exceptions import InsufficientInventory, ProductNotFound
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.exceptions import error_response


def _cart_body(message: str, cart: CartOutputDTO) -> Dict[str, Any]:
    return {"message": message, "cart": cart.model_dump(mode="json")}


class CartViewSet(ViewSet):
    """Mapped explicitly in ``urls.py``; the cart is a per-user singleton."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def retrieve(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        cart = self._service.get_cart(request.user.pk)
        return Response(_cart_body("Cart retrieved", cart))

    def count(self, request: Request) -> Response:
        """GET /api/v1/cart/count/"""
        return Response({"item_count": self._service.item_count(request.user.pk)})

    @extend_schema(request=AddCartItemSerializer)
    def add_item(self, request: Request) -> Response:
        """POST /api/v1/cart/items/"""
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = AddCartItemDTO(**serializer.validated_data)

        try:
            cart = self._service.add_item(request.user.pk, dto)
        except ProductNotFound:
            return error_response(
                "Product not found or out of stock", status.HTTP_404_NOT_FOUND
            )
        except InsufficientInventory as exc:
            return error_response(str(exc), status.HTTP_409_CONFLICT, [exc.as_dict()])

        return Response(_cart_body("Item added to cart", cart))

    @extend_schema(request=UpdateCartItemSerializer)
    def update_item(self, request: Request, product_id: str) -> Response:
        """PUT /api/v1/cart/items/{product_id}/"""
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateCartItemDTO(
            product_id=product_id, quantity=serializer.validated_data["quantity"]
        )

        try:
            cart = self._service.update_item(request.user.pk, dto)
        except CartNotFound:
            return error_response("Cart not found", status.HTTP_404_NOT_FOUND)
        except CartItemNotFound:
            return error_response("Item not found in cart", status.HTTP_404_NOT_FOUND)
        except ProductNotFound:
            return error_response(
                "Product not found or out of stock", status.HTTP_404_NOT_FOUND
            )
        except InsufficientInventory as exc:
            return error_response(str(exc), status.HTTP_409_CONFLICT, [exc.as_dict()])

        return Response(_cart_body("Cart updated", cart))

    def remove_item(self, request: Request, product_id: str) -> Response:
        """DELETE /api/v1/cart/items/{product_id}/"""
        cart = self._service.remove_item(request.user.pk, product_id)
        return Response(_cart_body("Item removed from cart", cart))

    def clear(self, request: Request) -> Response:
        """DELETE /api/v1/cart/"""
        cart = self._service.clear(request.user.pk)
        return Response(_cart_body("Cart cleared", cart))
