# products/serializers/product.py

from rest_framework import serializers

from products.models import Product

LEDGER_MANAGED_FIELDS = ("current_stock", "weighted_avg_cost", "stock_value", "version")


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)
    tank_utilisation = serializers.DecimalField(
        max_digits=7, decimal_places=2, read_only=True, allow_null=True
    )

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "product_type",
            "unit",
            "current_stock",
            "weighted_avg_cost",
            "stock_value",
            "selling_price",
            "minimum_stock_level",
            "tank_capacity",
            "is_active",
            "is_low_stock",
            "tank_utilisation",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("id", *LEDGER_MANAGED_FIELDS, "created_at", "updated_at")

    def update(self, instance, validated_data):
        # Catalogue fields only; the stock position belongs to the ledger.
        fields = [f for f in validated_data if f not in LEDGER_MANAGED_FIELDS]
        for field in fields:
            setattr(instance, field, validated_data[field])
        if fields:
            instance.full_clean()
            instance.save(update_fields=[*fields, "updated_at"])
        return instance


class StockAdjustmentSerializer(serializers.Serializer):
    quantity_delta = serializers.DecimalField(max_digits=14, decimal_places=3)
    reason = serializers.CharField(allow_blank=True)
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class InitialStockSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)
