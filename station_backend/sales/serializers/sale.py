# sales/serializers/sale.py

from rest_framework import serializers

from sales.models import Sale


class SaleSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    nozzle_number = serializers.CharField(source="nozzle.nozzle_number", read_only=True, default=None)
    account_name = serializers.CharField(source="account.name", read_only=True, default=None)
    card_payment = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            "id",
            "invoice_no",
            "product",
            "product_name",
            "nozzle",
            "nozzle_number",
            "opening_reading",
            "closing_reading",
            "quantity",
            "selling_price",
            "sale_amount",
            "cogs_per_unit",
            "total_cogs",
            "gross_profit",
            "payment_method",
            "account",
            "account_name",
            "card_payment",
            "movement",
            "transaction",
            "operation",
            "notes",
            "sale_date",
            "created_at",
        ]
        read_only_fields = fields

    def get_card_payment(self, obj):
        if not hasattr(obj, "card_payment"):
            return None
        payment = obj.card_payment
        return {
            "id": str(payment.pk),
            "card_type": payment.card_type.card_name,
            "status": payment.status,
            "net_amount": str(payment.net_amount),
        }


class SaleCreateSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    selling_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.CharField(required=False, default="cash")
    account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    card_type_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class NozzleReadingSerializer(serializers.Serializer):
    nozzle_id = serializers.CharField()
    closing_reading = serializers.DecimalField(max_digits=14, decimal_places=3)
    payment_method = serializers.CharField(required=False, default="cash")
    selling_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    card_type_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    reading_date = serializers.DateField(required=False, allow_null=True)
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class NozzleReadingPreviewQuerySerializer(serializers.Serializer):
    nozzle_id = serializers.CharField()
    closing_reading = serializers.DecimalField(max_digits=14, decimal_places=3)


class NozzleReadingPreviewSerializer(serializers.Serializer):
    nozzle_id = serializers.CharField()
    opening_reading = serializers.DecimalField(max_digits=14, decimal_places=3)
    closing_reading = serializers.DecimalField(max_digits=14, decimal_places=3)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    selling_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    sale_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
