"""Server-side order totals.

Client-supplied totals are never trusted; checkout and the payment
amount check both go through ``compute_totals``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def compute_totals(
    subtotal: Decimal,
    tax_rate: Optional[Decimal] = None,
    free_shipping_threshold: Optional[Decimal] = None,
    flat_shipping_fee: Optional[Decimal] = None,
) -> OrderTotals:
    """Tax is a flat rate on the subtotal; shipping is free strictly above the threshold."""
    if tax_rate is None:
        tax_rate = settings.ORDER_TAX_RATE
    if free_shipping_threshold is None:
        free_shipping_threshold = settings.FREE_SHIPPING_THRESHOLD
    if flat_shipping_fee is None:
        flat_shipping_fee = settings.FLAT_SHIPPING_FEE

    subtotal = to_money(subtotal)
    tax = to_money(subtotal * Decimal(str(tax_rate)))
    shipping = (
        Decimal("0.00")
        if subtotal > Decimal(str(free_shipping_threshold))
        else to_money(flat_shipping_fee)
    )
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=to_money(subtotal + tax + shipping),
    )
