"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ShippingAddressDTO``: destination snapshot, every field required.
- ``CheckoutDTO``: plain checkout (order starts ``pending``).
- ``PaymentCheckoutDTO``: checkout gated on a succeeded payment intent.
- ``UpdateStatusDTO``: admin status change.
- ``RefundDTO``: admin refund request.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from modules.orders.constants import OrderStatus, PaymentMethod


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    email: EmailStr
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str

    @field_validator("name", "phone", "street", "city", "state", "zip_code", "country")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("This field is required.")
        return v

    def as_order_fields(self) -> dict:
        return {f"shipping_{key}": value for key, value in self.model_dump().items()}


class CheckoutDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    shipping_address: ShippingAddressDTO
    payment_method: PaymentMethod = PaymentMethod.CARD
    transaction_id: str = ""
    notes: str = ""


class PaymentCheckoutDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_intent_id: str
    shipping_address: ShippingAddressDTO
    notes: str = ""

    @field_validator("payment_intent_id")
    @classmethod
    def intent_id_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Payment intent ID is required.")
        return v.strip()


class UpdateStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    tracking_number: Optional[str] = None
    notes: str = ""


class RefundDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Optional[Decimal] = None
    reason: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Amount must be positive.")
        return v
