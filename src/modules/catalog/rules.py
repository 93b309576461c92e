"""Catalog consistency checks.

The same purchasability rule gates add-to-cart, quantity updates and
checkout.  Checkout re-runs it against fresh product rows because
inventory may have moved since the item was put in the cart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from modules.catalog.exceptions import InsufficientInventory, ProductNotFound

if TYPE_CHECKING:
    from modules.catalog.models import Product


def ensure_purchasable(product: Optional[Product], quantity: int) -> Product:
    """Return *product* if *quantity* units of it can be bought right now.

    Raises:
        ProductNotFound: product missing, inactive or flagged out of stock.
        InsufficientInventory: inventory is below *quantity*.
    """
    if product is None or not product.is_purchasable:
        raise ProductNotFound("Product not found or out of stock.")
    if product.inventory < quantity:
        raise InsufficientInventory(
            product_id=product.id,
            title=product.title,
            requested=quantity,
            available=product.inventory,
        )
    return product
