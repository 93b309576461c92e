"""Inventory concurrency integration test.

Ten shoppers each hold one unit of a product with inventory 5 in their
cart and check out at the same time.  The conditional decrement must
let exactly five of them through and never drive inventory negative.

Uses ``TransactionTestCase`` so each thread sees committed data and
row-level locking behaves realistically.  SQLite serializes writers at
the database level, so the test only runs against a server database.
"""

from __future__ import annotations

import logging
import unittest
from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import Decimal

import django
from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TransactionTestCase

from modules.carts.dtos import AddCartItemDTO
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.catalog.exceptions import InsufficientInventory
from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.dtos import CheckoutDTO
from modules.orders.factory import build_order_service
from modules.orders.models import Order

logger = logging.getLogger(__name__)

INITIAL_INVENTORY = 5
NUM_WORKERS = 10

ADDRESS = {
    "name": "Load Test",
    "email": "load@example.com",
    "phone": "555-0100",
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


@unittest.skipIf(connection.vendor == "sqlite", "needs row-level locking")
class TestInventoryConcurrency(TransactionTestCase):
    """Prove the last units cannot be oversold under concurrent checkouts."""

    def setUp(self):
        User = get_user_model()
        self.product = Product.objects.create(
            title="Limited Edition",
            price=Decimal("49.00"),
            inventory=INITIAL_INVENTORY,
        )
        carts = CartService(CartDjangoRepository(), ProductDjangoRepository())
        self.buyers = []
        for i in range(NUM_WORKERS):
            buyer = User.objects.create_user(f"buyer{i}", password="x")
            carts.add_item(buyer.pk, AddCartItemDTO(product_id=self.product.id))
            self.buyers.append(buyer)

    def _checkout_in_thread(self, buyer_id: int) -> str:
        django.db.connections.close_all()
        try:
            build_order_service().checkout(buyer_id, CheckoutDTO(shipping_address=ADDRESS))
            return "success"
        except InsufficientInventory:
            logger.warning("Buyer %s lost the race (expected)", buyer_id)
            return "insufficient"
        finally:
            django.db.connections.close_all()

    def test_concurrent_checkouts_never_oversell(self):
        results = []
        with ThreadPoolExecutor(max_workers=NUM_WORKERS) as pool:
            futures = [
                pool.submit(self._checkout_in_thread, buyer.pk) for buyer in self.buyers
            ]
            for future in as_completed(futures):
                results.append(future.result())

        self.product.refresh_from_db()
        sold = results.count("success")

        self.assertEqual(sold, INITIAL_INVENTORY)
        self.assertEqual(results.count("insufficient"), NUM_WORKERS - INITIAL_INVENTORY)
        self.assertEqual(self.product.inventory, 0)
        self.assertEqual(Order.objects.count(), sold)
