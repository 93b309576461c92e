"""Catalog DTOs for the Service Layer (Pydantic v2, immutable).

- ``CreateProductDTO``: admin product creation.
- ``UpdateProductDTO``: partial admin update (only supplied fields change).
- ``AdjustInventoryDTO``: relative stock correction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreateProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    price: Decimal
    description: str = ""
    category: str = ""
    sku: str = ""
    inventory: int = 0
    in_stock: bool = True

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title must not be empty.")
        return v.strip()

    @field_validator("price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price cannot be negative.")
        return v

    @field_validator("inventory")
    @classmethod
    def inventory_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Inventory cannot be negative.")
        return v


class UpdateProductDTO(BaseModel):
    """All fields optional; ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None
    category: Optional[str] = None
    inventory: Optional[int] = None
    in_stock: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("price")
    @classmethod
    def price_must_not_be_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative.")
        return v

    @field_validator("inventory")
    @classmethod
    def inventory_must_not_be_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Inventory cannot be negative.")
        return v

    def changed_fields(self) -> dict:
        return self.model_dump(exclude_none=True)


class AdjustInventoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    delta: int

    @field_validator("delta")
    @classmethod
    def delta_must_not_be_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("Adjustment must not be zero.")
        return v
