# accounting/api/serializers/cards.py

from rest_framework import serializers

from accounting.models import CardPayment, CardType


class CardTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = CardType
        fields = ["id", "card_name", "tax_percentage", "is_active", "created_at", "updated_at"]
        read_only_fields = ("id", "created_at", "updated_at")


class CardPaymentSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth).

    amount is gross; net_amount is what the bank receives on settlement.
    """

    card_name = serializers.CharField(source="card_type.card_name", read_only=True)
    invoice_no = serializers.CharField(source="sale.invoice_no", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True, default=None)

    class Meta:
        model = CardPayment
        fields = [
            "id",
            "card_type",
            "card_name",
            "sale",
            "invoice_no",
            "amount",
            "tax_percentage",
            "tax_amount",
            "net_amount",
            "payment_date",
            "status",
            "account",
            "account_name",
            "received_date",
            "settlement_transaction",
            "tax_expense",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class CardSettlementSerializer(serializers.Serializer):
    """account_id is optional: without it the first active bank account receives."""

    account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    settlement_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)
