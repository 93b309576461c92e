"""Product DRF serializers (output only).

Input is validated by the pydantic DTOs in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.models import Product


class ProductSerializer(serializers.ModelSerializer):
    is_purchasable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "title",
            "description",
            "category",
            "price",
            "inventory",
            "in_stock",
            "is_active",
            "is_purchasable",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
