"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into envelope responses;
the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.catalog.exceptions import InsufficientInventory, ProductNotFound
from modules.core.exceptions import error_response
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CheckoutDTO, RefundDTO, UpdateStatusDTO
from modules.orders.exceptions import (
    AmountMismatch,
    EmptyCart,
    InvalidTransition,
    OrderNotFound,
    OrderNotRefundable,
    PaymentNotCompleted,
)
from modules.orders.factory import build_order_service
from modules.orders.filters import OrderFilter
from modules.orders.serializers import (
    CheckoutSerializer,
    OrderListSerializer,
    OrderSerializer,
    RefundSerializer,
    UpdateStatusSerializer,
)
from modules.payments.exceptions import UpstreamFailure

CHECKOUT_ERRORS = (
    EmptyCart,
    ProductNotFound,
    InsufficientInventory,
    AmountMismatch,
    PaymentNotCompleted,
    InvalidTransition,
    UpstreamFailure,
)


def checkout_error_response(exc: Exception) -> Response:
    """Translate a checkout failure into its envelope response."""
    if isinstance(exc, InsufficientInventory):
        return error_response(str(exc), status.HTTP_409_CONFLICT, [exc.as_dict()])
    if isinstance(exc, ProductNotFound):
        return error_response(str(exc), status.HTTP_404_NOT_FOUND)
    if isinstance(exc, PaymentNotCompleted):
        return error_response(
            "Payment not successful",
            status.HTTP_400_BAD_REQUEST,
            status=exc.payment_status,
        )
    if isinstance(exc, AmountMismatch):
        return error_response(
            "Payment amount does not match order total",
            status.HTTP_400_BAD_REQUEST,
            [{"charged": str(exc.charged), "expected": str(exc.expected)}],
        )
    if isinstance(exc, UpstreamFailure):
        return error_response(
            "Payment processor error",
            status.HTTP_502_BAD_GATEWAY,
            [{"code": "upstream_failure", "detail": str(exc)}],
        )
    return error_response(str(exc), status.HTTP_400_BAD_REQUEST)


class OrderViewSet(GenericViewSet):
    """Shopper order history, checkout and cancellation plus admin back-office actions.

    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "order_status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in {"admin_list", "update_status", "refund"}:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "checkout" if self.action == "create" else None
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @extend_schema(request=CheckoutSerializer, responses=OrderSerializer)
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = CheckoutDTO(**serializer.validated_data)

        try:
            order = self._service.checkout(request.user.pk, dto)
        except CHECKOUT_ERRORS as exc:
            return checkout_error_response(exc)

        return Response(
            {"message": "Order created successfully", "order": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # Shopper reads
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?status=..."""
        status_value = request.query_params.get("status")
        if status_value and status_value not in OrderStatus.values:
            return error_response(
                "Validation error",
                status.HTTP_400_BAD_REQUEST,
                [{"field": "status", "code": "invalid_choice", "detail": "Invalid status."}],
            )
        queryset = self._service.list_user_orders(request.user.pk, status_value)
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(
                pk, user_id=request.user.pk, is_admin=request.user.is_staff
            )
        except OrderNotFound:
            return error_response("Order not found", status.HTTP_404_NOT_FOUND)
        return Response({"message": "Order retrieved", "order": OrderSerializer(order).data})

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        try:
            order = self._service.cancel_order(
                request.user.pk, pk, notes=request.data.get("notes", "")
            )
        except OrderNotFound:
            return error_response("Order not found", status.HTTP_404_NOT_FOUND)
        except InvalidTransition as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(
            {"message": "Order cancelled successfully", "order": OrderSerializer(order).data}
        )

    # ------------------------------------------------------------------
    # Admin back-office
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="admin")
    def admin_list(self, request: Request) -> Response:
        """GET /api/v1/orders/admin/?status=...&ordering=-total"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    @extend_schema(request=UpdateStatusSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["patch", "put"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateStatusDTO(**serializer.validated_data)

        try:
            order = self._service.update_status(pk, dto, actor_id=request.user.pk)
        except OrderNotFound:
            return error_response("Order not found", status.HTTP_404_NOT_FOUND)

        return Response(
            {"message": "Order status updated successfully", "order": OrderSerializer(order).data}
        )

    @extend_schema(request=RefundSerializer)
    @action(detail=True, methods=["post"])
    def refund(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/refund/"""
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = RefundDTO(**serializer.validated_data)

        try:
            order, refund = self._service.refund_order(pk, dto, actor_id=request.user.pk)
        except OrderNotFound:
            return error_response("Order not found", status.HTTP_404_NOT_FOUND)
        except OrderNotRefundable as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST)
        except UpstreamFailure as exc:
            return checkout_error_response(exc)

        return Response(
            {
                "message": "Refund processed successfully",
                "order": OrderSerializer(order).data,
                "refund": refund.model_dump(mode="json"),
            }
        )
