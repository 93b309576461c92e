"""Product API views.

Shoppers browse active products anonymously; admins (``is_staff``)
create, edit, correct stock and deactivate.  Domain exceptions are
caught here and translated into envelope responses.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.catalog.dtos import AdjustInventoryDTO, CreateProductDTO, UpdateProductDTO
from modules.catalog.exceptions import (
    InsufficientInventory,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.filters import ProductFilter
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.serializers import ProductSerializer
from modules.catalog.services import CatalogService
from modules.core.exceptions import error_response, pydantic_errors

PRODUCT_FIELDS = (
    "title",
    "price",
    "description",
    "category",
    "inventory",
    "in_stock",
    "is_active",
)


class ProductViewSet(GenericViewSet):
    """Catalog endpoints backed by ``CatalogService``."""

    filterset_class = ProductFilter
    search_fields = ["title", "sku", "description"]
    ordering_fields = ["title", "price", "inventory", "created_at"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = ProductDjangoRepository()
        self._service = CatalogService(repository=self._repository)

    def get_permissions(self):
        if self.action in {"list", "retrieve", "categories"}:
            return [AllowAny()]
        return [IsAdminUser()]

    def _is_admin(self) -> bool:
        return bool(self.request.user and self.request.user.is_staff)

    def get_queryset(self):
        filters = None if self._is_admin() else {"is_active": True}
        return self._repository.queryset(filters)

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = ProductSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk, include_inactive=self._is_admin())
        except ProductNotFound:
            return error_response("Product not found", status.HTTP_404_NOT_FOUND)
        return Response(
            {"message": "Product retrieved", "product": ProductSerializer(product).data}
        )

    @action(detail=False, methods=["get"])
    def categories(self, request: Request) -> Response:
        """GET /api/v1/products/categories/"""
        return Response({"categories": self._service.list_categories()})

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        data = request.data
        try:
            dto = CreateProductDTO(
                **{key: data[key] for key in (*PRODUCT_FIELDS, "sku") if key in data}
            )
        except PydanticValidationError as exc:
            return error_response(
                "Validation error", status.HTTP_400_BAD_REQUEST, pydantic_errors(exc)
            )

        try:
            product = self._service.create_product(dto)
        except ProductAlreadyExists as exc:
            return error_response(str(exc), status.HTTP_409_CONFLICT)

        return Response(
            {"message": "Product created", "product": ProductSerializer(product).data},
            status=status.HTTP_201_CREATED,
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        data = request.data
        try:
            dto = UpdateProductDTO(
                **{key: data[key] for key in PRODUCT_FIELDS if key in data}
            )
        except PydanticValidationError as exc:
            return error_response(
                "Validation error", status.HTTP_400_BAD_REQUEST, pydantic_errors(exc)
            )

        try:
            product = self._service.update_product(pk, dto)
        except ProductNotFound:
            return error_response("Product not found", status.HTTP_404_NOT_FOUND)

        return Response(
            {"message": "Product updated", "product": ProductSerializer(product).data}
        )

    @action(detail=True, methods=["patch"], url_path="stock")
    def adjust_stock(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/stock/  ``{"delta": N}``"""
        try:
            dto = AdjustInventoryDTO(delta=request.data.get("delta"))
        except PydanticValidationError as exc:
            return error_response(
                "Validation error", status.HTTP_400_BAD_REQUEST, pydantic_errors(exc)
            )

        try:
            product = self._service.adjust_inventory(pk, dto)
        except ProductNotFound:
            return error_response("Product not found", status.HTTP_404_NOT_FOUND)
        except InsufficientInventory as exc:
            return error_response(
                str(exc), status.HTTP_409_CONFLICT, [exc.as_dict()]
            )

        return Response(
            {"message": "Inventory adjusted", "product": ProductSerializer(product).data}
        )

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (deactivates, never deletes)"""
        try:
            self._service.deactivate_product(pk)
        except ProductNotFound:
            return error_response("Product not found", status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
