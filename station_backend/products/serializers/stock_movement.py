# products/serializers/stock_movement.py

from rest_framework import serializers

from products.models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "product_name",
            "movement_type",
            "quantity",
            "unit_price",
            "weighted_avg_after",
            "balance_after",
            "reference_type",
            "reference_id",
            "notes",
            "operation",
            "created_at",
        ]
        read_only_fields = fields
