"""Cart URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.carts.views import CartViewSet

cart = CartViewSet.as_view({"get": "retrieve", "delete": "clear"})
cart_count = CartViewSet.as_view({"get": "count"})
cart_items = CartViewSet.as_view({"post": "add_item"})
cart_item = CartViewSet.as_view({"put": "update_item", "delete": "remove_item"})

urlpatterns = [
    path("cart/", cart, name="cart"),
    path("cart/count/", cart_count, name="cart-count"),
    path("cart/items/", cart_items, name="cart-items"),
    path("cart/items/<uuid:product_id>/", cart_item, name="cart-item"),
]
