"""Cart DTOs for the Service Layer (Pydantic v2, immutable).

- ``AddCartItemDTO``: add *quantity* units of a product.
- ``UpdateCartItemDTO``: set a line's quantity (0 removes it).
- ``CartOutputDTO``: read model returned by every cart operation; a user
  without a cart gets ``CartOutputDTO.empty()``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.carts.models import Cart


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class AddCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class UpdateCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Quantity must be a non-negative integer.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    title: str
    price: Decimal
    quantity: int
    line_total: Decimal
    in_stock: bool


class CartOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[UUID] = None
    user_id: Any = None
    items: List[CartLineDTO] = []
    total_amount: Decimal = Decimal("0.00")
    item_count: int = 0

    @classmethod
    def empty(cls, user_id: Any = None) -> CartOutputDTO:
        return cls(user_id=user_id)

    @classmethod
    def from_entity(cls, cart: Cart) -> CartOutputDTO:
        """Assumes ``items__product`` is prefetched (or cheap to load)."""
        lines = [
            CartLineDTO(
                product_id=item.product_id,
                title=item.product.title,
                price=item.price,
                quantity=item.quantity,
                line_total=item.line_total,
                in_stock=item.product.is_purchasable,
            )
            for item in cart.items.all()
        ]
        return cls(
            id=cart.id,
            user_id=cart.user_id,
            items=lines,
            total_amount=cart.total_amount,
            item_count=sum(line.quantity for line in lines),
        )
