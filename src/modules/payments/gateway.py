"""Payment gateway port and its Stripe adapter.

Amounts cross this boundary as ``Decimal`` major units; the Stripe
adapter converts to and from integer cents.  Every processor error is
re-raised as ``UpstreamFailure`` so callers never import ``stripe``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
import structlog
from django.conf import settings

from modules.payments.dtos import ChargeDTO, PaymentEventDTO, RefundResultDTO
from modules.payments.exceptions import UpstreamFailure, WebhookSignatureError

logger = structlog.get_logger(__name__)

EVENT_OUTCOMES = {
    "payment_intent.succeeded": "succeeded",
    "payment_intent.payment_failed": "failed",
}


def to_cents(amount: Decimal) -> int:
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def _plain(obj: Any) -> Dict[str, Any]:
    if not obj:
        return {}
    return {key: obj[key] for key in obj.keys()}


class IPaymentGateway(ABC):
    @abstractmethod
    def create_charge(
        self, amount: Decimal, currency: str, metadata: Dict[str, Any]
    ) -> ChargeDTO:
        """Open a payment intent the client can confirm."""

    @abstractmethod
    def retrieve_charge(self, charge_id: str) -> ChargeDTO:
        """Current state of a payment intent."""

    @abstractmethod
    def refund(
        self,
        charge_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> RefundResultDTO:
        """Refund a captured payment, fully when *amount* is ``None``."""

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> PaymentEventDTO:
        """Verify and decode a webhook delivery."""


class StripePaymentGateway(IPaymentGateway):
    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret

    @staticmethod
    def _charge(intent: Any) -> ChargeDTO:
        return ChargeDTO(
            id=intent.id,
            status=intent.status,
            amount=from_cents(intent.amount),
            currency=getattr(intent, "currency", None) or "usd",
            client_secret=getattr(intent, "client_secret", None),
            metadata=_plain(getattr(intent, "metadata", None)),
            created=getattr(intent, "created", None),
        )

    @staticmethod
    def _upstream(operation: str, exc: stripe.StripeError) -> UpstreamFailure:
        logger.error(
            "payment.processor_error",
            operation=operation,
            error_type=type(exc).__name__,
            http_status=getattr(exc, "http_status", None),
        )
        return UpstreamFailure(exc.user_message or "Payment processor error")

    def create_charge(
        self, amount: Decimal, currency: str, metadata: Dict[str, Any]
    ) -> ChargeDTO:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._api_key,
                amount=to_cents(amount),
                currency=currency,
                metadata=metadata,
            )
        except stripe.StripeError as exc:
            raise self._upstream("create_charge", exc) from exc
        logger.info("payment.intent_created", charge_id=intent.id, currency=currency)
        return self._charge(intent)

    def retrieve_charge(self, charge_id: str) -> ChargeDTO:
        try:
            intent = stripe.PaymentIntent.retrieve(charge_id, api_key=self._api_key)
        except stripe.StripeError as exc:
            raise self._upstream("retrieve_charge", exc) from exc
        return self._charge(intent)

    def refund(
        self,
        charge_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> RefundResultDTO:
        params: Dict[str, Any] = {"payment_intent": charge_id}
        if amount is not None:
            params["amount"] = to_cents(amount)
        if reason:
            params["reason"] = reason
        try:
            refund = stripe.Refund.create(api_key=self._api_key, **params)
        except stripe.StripeError as exc:
            raise self._upstream("refund", exc) from exc
        logger.info("payment.refunded", charge_id=charge_id, refund_id=refund.id)
        return RefundResultDTO(
            id=refund.id,
            amount=from_cents(refund.amount),
            status=refund.status,
            reason=getattr(refund, "reason", None),
        )

    def construct_event(self, payload: bytes, signature: str) -> PaymentEventDTO:
        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self._webhook_secret
            )
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise WebhookSignatureError(str(exc)) from exc

        obj = event.data.object
        cents = getattr(obj, "amount", None)
        return PaymentEventDTO(
            id=event.id,
            type=event.type,
            charge_id=getattr(obj, "id", None),
            outcome=EVENT_OUTCOMES.get(event.type, "ignored"),
            amount=from_cents(cents) if cents is not None else None,
            currency=getattr(obj, "currency", None),
        )


def get_payment_gateway() -> IPaymentGateway:
    return StripePaymentGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
    )
