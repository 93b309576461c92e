"""Unit tests for the Stripe gateway adapter (Stripe SDK patched)."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
import stripe

from modules.payments.exceptions import UpstreamFailure, WebhookSignatureError
from modules.payments.gateway import (
    StripePaymentGateway,
    from_cents,
    get_payment_gateway,
    to_cents,
)

pytestmark = pytest.mark.unit


def _intent(**overrides):
    values = {
        "id": "pi_123",
        "object": "payment_intent",
        "status": "succeeded",
        "amount": 21600,
        "currency": "usd",
        "client_secret": "pi_123_secret_abc",
        "metadata": {"user_id": "42"},
        "created": 1767225600,
    }
    values.update(overrides)
    return stripe.PaymentIntent.construct_from(values, "sk_test_dummy")


@pytest.fixture()
def gateway():
    return StripePaymentGateway(api_key="sk_test_dummy", webhook_secret="whsec_dummy")


class TestAmountConversion:
    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("216.00")) == 21600
        assert to_cents(Decimal("0.505")) == 51

    def test_from_cents(self):
        assert from_cents(6900) == Decimal("69.00")


class TestStripePaymentGateway:
    def test_create_charge_sends_cents_and_metadata(self, gateway):
        intent = _intent(status="requires_payment_method")
        with patch("stripe.PaymentIntent.create", return_value=intent) as create:
            charge = gateway.create_charge(
                Decimal("216.00"), "usd", metadata={"user_id": "42"}
            )

        create.assert_called_once_with(
            api_key="sk_test_dummy",
            amount=21600,
            currency="usd",
            metadata={"user_id": "42"},
        )
        assert charge.id == "pi_123"
        assert charge.client_secret == "pi_123_secret_abc"
        assert charge.amount == Decimal("216.00")
        assert charge.succeeded is False

    def test_retrieve_charge(self, gateway):
        with patch("stripe.PaymentIntent.retrieve", return_value=_intent()) as retrieve:
            charge = gateway.retrieve_charge("pi_123")

        retrieve.assert_called_once_with("pi_123", api_key="sk_test_dummy")
        assert charge.succeeded is True
        assert charge.metadata == {"user_id": "42"}

    def test_processor_error_becomes_upstream_failure(self, gateway):
        error = stripe.APIConnectionError("network down")
        with patch("stripe.PaymentIntent.retrieve", side_effect=error):
            with pytest.raises(UpstreamFailure):
                gateway.retrieve_charge("pi_123")

    def test_refund_full_amount(self, gateway):
        refund = stripe.Refund.construct_from(
            {
                "id": "re_1",
                "object": "refund",
                "amount": 21600,
                "status": "succeeded",
                "reason": None,
            },
            "sk_test_dummy",
        )
        with patch("stripe.Refund.create", return_value=refund) as create:
            result = gateway.refund("pi_123")

        create.assert_called_once_with(api_key="sk_test_dummy", payment_intent="pi_123")
        assert result.id == "re_1"
        assert result.amount == Decimal("216.00")

    def test_partial_refund_with_reason(self, gateway):
        refund = stripe.Refund.construct_from(
            {
                "id": "re_2",
                "object": "refund",
                "amount": 1000,
                "status": "succeeded",
                "reason": "requested_by_customer",
            },
            "sk_test_dummy",
        )
        with patch("stripe.Refund.create", return_value=refund) as create:
            result = gateway.refund(
                "pi_123", Decimal("10.00"), "requested_by_customer"
            )

        create.assert_called_once_with(
            api_key="sk_test_dummy",
            payment_intent="pi_123",
            amount=1000,
            reason="requested_by_customer",
        )
        assert result.reason == "requested_by_customer"

    @pytest.mark.parametrize(
        ("event_type", "outcome"),
        [
            ("payment_intent.succeeded", "succeeded"),
            ("payment_intent.payment_failed", "failed"),
            ("charge.refunded", "ignored"),
        ],
    )
    def test_construct_event_maps_outcome(self, gateway, event_type, outcome):
        event = stripe.Event.construct_from(
            {
                "id": "evt_1",
                "object": "event",
                "type": event_type,
                "data": {"object": {"id": "pi_123", "object": "payment_intent"}},
            },
            "sk_test_dummy",
        )
        with patch("stripe.Webhook.construct_event", return_value=event) as construct:
            dto = gateway.construct_event(b"{}", "t=1,v1=abc")

        construct.assert_called_once_with(b"{}", "t=1,v1=abc", "whsec_dummy")
        assert dto.id == "evt_1"
        assert dto.charge_id == "pi_123"
        assert dto.outcome == outcome
        assert dto.amount is None
        assert dto.currency is None

    def test_construct_event_carries_intent_amount(self, gateway):
        event = stripe.Event.construct_from(
            {
                "id": "evt_2",
                "object": "event",
                "type": "payment_intent.succeeded",
                "data": {
                    "object": {
                        "id": "pi_123",
                        "object": "payment_intent",
                        "amount": 21650,
                        "currency": "usd",
                    }
                },
            },
            "sk_test_dummy",
        )
        with patch("stripe.Webhook.construct_event", return_value=event):
            dto = gateway.construct_event(b"{}", "t=1,v1=abc")

        assert dto.amount == Decimal("216.50")
        assert dto.currency == "usd"

    def test_bad_signature_raises(self, gateway):
        error = stripe.SignatureVerificationError("No signatures found", "sig")
        with patch("stripe.Webhook.construct_event", side_effect=error):
            with pytest.raises(WebhookSignatureError):
                gateway.construct_event(b"{}", "bad")

    def test_malformed_payload_raises(self, gateway):
        with patch("stripe.Webhook.construct_event", side_effect=ValueError("bad json")):
            with pytest.raises(WebhookSignatureError):
                gateway.construct_event(b"not json", "t=1,v1=abc")


def test_get_payment_gateway_uses_settings(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_from_settings"
    gateway = get_payment_gateway()
    assert isinstance(gateway, StripePaymentGateway)
    assert gateway._api_key == "sk_test_from_settings"
