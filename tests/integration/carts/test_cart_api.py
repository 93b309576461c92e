"""Integration tests for the cart endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration

CART_URL = "/api/v1/cart/"
ITEMS_URL = "/api/v1/cart/items/"


def _add(client, product, quantity=1):
    return client.post(
        ITEMS_URL, {"product_id": str(product.id), "quantity": quantity}, format="json"
    )


class TestCartApi:
    def test_requires_authentication(self, api_client):
        assert api_client.get(CART_URL).status_code == 401

    def test_empty_cart(self, auth_client):
        response = auth_client.get(CART_URL)
        assert response.status_code == 200
        cart = response.json()["cart"]
        assert cart["items"] == []
        assert cart["total_amount"] == "0.00"

    def test_add_item(self, auth_client, product):
        response = _add(auth_client, product, 2)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Item added to cart"
        assert body["cart"]["item_count"] == 2
        assert body["cart"]["items"][0]["product_id"] == str(product.id)

    def test_add_beyond_inventory_conflicts(self, auth_client, product):
        response = _add(auth_client, product, 6)

        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["requested"] == 6
        assert error["available"] == 5

    def test_add_unknown_product(self, auth_client):
        response = auth_client.post(
            ITEMS_URL, {"product_id": str(uuid4()), "quantity": 1}, format="json"
        )
        assert response.status_code == 404

    def test_add_invalid_quantity(self, auth_client, product):
        response = _add(auth_client, product, 0)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "quantity"

    def test_update_item(self, auth_client, product):
        _add(auth_client, product, 1)
        response = auth_client.put(
            f"{ITEMS_URL}{product.id}/", {"quantity": 4}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["cart"]["item_count"] == 4

    def test_update_item_without_cart(self, auth_client, product):
        response = auth_client.put(
            f"{ITEMS_URL}{product.id}/", {"quantity": 1}, format="json"
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Cart not found"

    def test_remove_item(self, auth_client, product):
        _add(auth_client, product, 1)
        response = auth_client.delete(f"{ITEMS_URL}{product.id}/")
        assert response.status_code == 200
        assert response.json()["cart"]["items"] == []

    def test_count(self, auth_client, product):
        _add(auth_client, product, 3)
        assert auth_client.get(f"{CART_URL}count/").json() == {"item_count": 3}

    def test_clear(self, auth_client, product):
        _add(auth_client, product, 2)
        response = auth_client.delete(CART_URL)
        assert response.status_code == 200
        assert response.json()["cart"]["item_count"] == 0
