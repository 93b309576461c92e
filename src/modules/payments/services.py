"""Payment-intent use cases for shoppers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from modules.payments.exceptions import PaymentAccessDenied

if TYPE_CHECKING:
    from modules.payments.dtos import ChargeDTO, CreateIntentDTO
    from modules.payments.gateway import IPaymentGateway

logger = structlog.get_logger(__name__)


class PaymentService:
    def __init__(self, gateway: IPaymentGateway) -> None:
        self._gateway = gateway

    def create_intent(self, user, dto: CreateIntentDTO) -> ChargeDTO:
        """Open a payment intent tagged with the shopper's identity.

        Raises:
            UpstreamFailure: the processor rejected the request.
        """
        charge = self._gateway.create_charge(
            dto.amount,
            dto.currency,
            metadata={"user_id": str(user.pk), "user_email": user.email or ""},
        )
        logger.info(
            "payment.intent_requested",
            user_id=str(user.pk),
            charge_id=charge.id,
            amount=str(dto.amount),
        )
        return charge

    def get_intent(self, user, intent_id: str) -> ChargeDTO:
        """Raises ``PaymentAccessDenied`` unless the intent was opened by *user*."""
        charge = self._gateway.retrieve_charge(intent_id)
        if charge.metadata.get("user_id") != str(user.pk):
            logger.warning(
                "payment.intent_access_denied", user_id=str(user.pk), charge_id=intent_id
            )
            raise PaymentAccessDenied("Access denied.")
        return charge
