"""Payment DTOs (Pydantic v2, immutable).

- ``CreateIntentDTO``: shopper request for a payment intent.
- ``ChargeDTO``: processor-neutral view of a payment intent.
- ``RefundResultDTO``: outcome of a refund.
- ``PaymentEventDTO``: verified webhook event, reduced to what
  reconciliation needs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

SUPPORTED_CURRENCIES = ("usd", "eur", "gbp")
MINIMUM_CHARGE = Decimal("0.50")


class CreateIntentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str = "usd"

    @field_validator("amount")
    @classmethod
    def amount_must_meet_minimum(cls, v: Decimal) -> Decimal:
        if v < MINIMUM_CHARGE:
            raise ValueError("Amount must be at least $0.50.")
        return v

    @field_validator("currency")
    @classmethod
    def currency_must_be_supported(cls, v: str) -> str:
        v = v.lower()
        if v not in SUPPORTED_CURRENCIES:
            raise ValueError("Invalid currency.")
        return v


class ChargeDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    status: str
    amount: Decimal
    currency: str = "usd"
    client_secret: Optional[str] = None
    metadata: Dict[str, Any] = {}
    created: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class RefundResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    amount: Decimal
    status: str
    reason: Optional[str] = None


class PaymentEventDTO(BaseModel):
    """``outcome`` is ``succeeded``, ``failed`` or ``ignored``.

    ``amount`` and ``currency`` describe the charge when the event object
    is a payment intent.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    charge_id: Optional[str] = None
    outcome: str = "ignored"
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
