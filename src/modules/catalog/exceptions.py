"""Catalog domain exceptions.

Raised by the catalog rules and services; the cart and order services
let them propagate so the views can translate them into HTTP responses.
"""

from __future__ import annotations


class ProductNotFound(Exception):
    """The product does not exist, is inactive, or is out of stock."""


class ProductAlreadyExists(Exception):
    """A product with the same SKU already exists."""


class InsufficientInventory(Exception):
    """The requested quantity exceeds the product's current inventory."""

    def __init__(
        self,
        product_id: object,
        title: str,
        requested: int,
        available: int,
        message: str | None = None,
    ) -> None:
        self.product_id = product_id
        self.title = title
        self.requested = requested
        self.available = available
        super().__init__(
            message
            or f'Product "{title}": requested {requested}, only {available} available.'
        )

    def as_dict(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "title": self.title,
            "requested": self.requested,
            "available": self.available,
        }
