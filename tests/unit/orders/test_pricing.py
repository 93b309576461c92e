"""Unit tests for server-side order totals."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.pricing import compute_totals, to_money

pytestmark = pytest.mark.unit


class TestComputeTotals:
    def test_above_threshold_ships_free(self):
        totals = compute_totals(Decimal("200.00"))
        assert totals.subtotal == Decimal("200.00")
        assert totals.tax == Decimal("16.00")
        assert totals.shipping == Decimal("0.00")
        assert totals.total == Decimal("216.00")

    def test_below_threshold_pays_flat_fee(self):
        totals = compute_totals(Decimal("50.00"))
        assert totals.tax == Decimal("4.00")
        assert totals.shipping == Decimal("15.00")
        assert totals.total == Decimal("69.00")

    def test_exactly_at_threshold_is_not_free(self):
        totals = compute_totals(Decimal("100.00"))
        assert totals.shipping == Decimal("15.00")
        assert totals.total == Decimal("123.00")

    def test_tax_rounds_half_up_to_cents(self):
        totals = compute_totals(Decimal("0.0625"), tax_rate=Decimal("0.08"))
        # 0.06 * 0.08 = 0.0048 -> 0.00
        assert totals.subtotal == Decimal("0.06")
        assert totals.tax == Decimal("0.00")

        totals = compute_totals(Decimal("10.99"), tax_rate=Decimal("0.08"))
        # 10.99 * 0.08 = 0.8792 -> 0.88
        assert totals.tax == Decimal("0.88")

    def test_explicit_rates_override_settings(self):
        totals = compute_totals(
            Decimal("40.00"),
            tax_rate=Decimal("0.10"),
            free_shipping_threshold=Decimal("30.00"),
            flat_shipping_fee=Decimal("5.00"),
        )
        assert totals.tax == Decimal("4.00")
        assert totals.shipping == Decimal("0.00")
        assert totals.total == Decimal("44.00")

    def test_settings_override(self, settings):
        settings.ORDER_TAX_RATE = Decimal("0")
        settings.FLAT_SHIPPING_FEE = Decimal("7.50")
        totals = compute_totals(Decimal("20.00"))
        assert totals.total == Decimal("27.50")


def test_to_money_quantizes_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(3) == Decimal("3.00")
