# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseOrder, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = "__all__"
        read_only_fields = ("id", "account_balance", "version", "created_at")

    def update(self, instance, validated_data):
        # account_balance is ledger-managed; write contact fields only.
        fields = [f for f in validated_data if f not in ("account_balance", "version")]
        for field in fields:
            setattr(instance, field, validated_data[field])
        if fields:
            instance.full_clean()
            instance.save(update_fields=fields)
        return instance


class PurchaseLineSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)


class PurchaseCreateSerializer(serializers.Serializer):
    supplier_id = serializers.CharField()
    items = PurchaseLineSerializer(many=True)
    paid_amount = serializers.DecimalField(
        max_digits=16, decimal_places=2, required=False, default="0.00"
    )
    payment_method = serializers.CharField(required=False, default="cash")
    account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    invoice_number = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PurchaseOrderSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrder
        fields = "__all__"

    def get_items(self, obj):
        qs = obj.items.select_related("product").all()
        return [
            {
                "id": str(it.id),
                "product_id": str(it.product_id),
                "product_name": getattr(it.product, "name", ""),
                "quantity": str(it.quantity),
                "unit_price": str(it.unit_price),
                "line_total": str(it.line_total),
                "old_weighted_avg": str(it.old_weighted_avg),
                "new_weighted_avg": str(it.new_weighted_avg),
                "movement_id": str(it.movement_id),
            }
            for it in qs
        ]
