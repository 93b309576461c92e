"""Payment API views.

Intent creation and lookup for shoppers, the payment-gated checkout,
and the processor webhook (signature-verified, unauthenticated).
"""

from __future__ import annotations

import structlog
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.exceptions import error_response
from modules.orders.dtos import PaymentCheckoutDTO
from modules.orders.factory import build_order_service
from modules.orders.serializers import OrderSerializer, PaymentCheckoutSerializer
from modules.orders.views import CHECKOUT_ERRORS, checkout_error_response
from modules.payments.dtos import CreateIntentDTO
from modules.payments.exceptions import (
    PaymentAccessDenied,
    UpstreamFailure,
    WebhookSignatureError,
)
from modules.payments.gateway import get_payment_gateway
from modules.payments.serializers import ChargeSerializer, CreateIntentSerializer
from modules.payments.services import PaymentService
from modules.payments.tasks import reconcile_payment_event

logger = structlog.get_logger(__name__)


class PaymentIntentCreateView(APIView):
    @extend_schema(request=CreateIntentSerializer)
    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/intents/"""
        serializer = CreateIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = CreateIntentDTO(**serializer.validated_data)

        try:
            charge = PaymentService(get_payment_gateway()).create_intent(request.user, dto)
        except UpstreamFailure as exc:
            return checkout_error_response(exc)

        return Response(
            {
                "message": "Payment intent created",
                "client_secret": charge.client_secret,
                "payment_intent_id": charge.id,
            },
            status=status.HTTP_201_CREATED,
        )


class PaymentIntentDetailView(APIView):
    def get(self, request: Request, intent_id: str) -> Response:
        """GET /api/v1/payments/intents/{intent_id}/"""
        try:
            charge = PaymentService(get_payment_gateway()).get_intent(
                request.user, intent_id
            )
        except PaymentAccessDenied:
            return error_response("Access denied", status.HTTP_403_FORBIDDEN)
        except UpstreamFailure as exc:
            return checkout_error_response(exc)

        return Response(
            {
                "message": "Payment intent retrieved",
                "payment_intent": ChargeSerializer(charge).data,
            }
        )


class PaymentConfirmView(APIView):
    throttle_scope = "checkout"

    @extend_schema(request=PaymentCheckoutSerializer, responses=OrderSerializer)
    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/confirm/"""
        serializer = PaymentCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = PaymentCheckoutDTO(**serializer.validated_data)

        try:
            order = build_order_service().checkout_with_payment(request.user.pk, dto)
        except CHECKOUT_ERRORS as exc:
            return checkout_error_response(exc)

        return Response(
            {
                "message": "Payment confirmed and order created successfully",
                "order": OrderSerializer(order).data,
            }
        )


class PaymentWebhookView(APIView):
    """Processor callbacks.  The signature is the only credential."""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    @extend_schema(request=None, responses=None)
    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/webhook/"""
        signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        try:
            event = get_payment_gateway().construct_event(request.body, signature)
        except WebhookSignatureError as exc:
            logger.warning("payment.webhook_rejected", reason=str(exc))
            return error_response(f"Webhook Error: {exc}", status.HTTP_400_BAD_REQUEST)

        logger.info(
            "payment.webhook_received",
            event_id=event.id,
            event_type=event.type,
            charge_id=event.charge_id,
        )
        reconcile_payment_event.delay(event.model_dump(mode="json"))
        return Response({"received": True})
