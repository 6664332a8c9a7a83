# accounting/api/serializers/expenses.py

from rest_framework import serializers

from accounting.models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth) - clean, stable contract.
    """

    account_name = serializers.CharField(source="account.name", read_only=True, allow_null=True)
    transaction_id = serializers.UUIDField(source="transaction.id", read_only=True, allow_null=True)

    class Meta:
        model = Expense
        fields = [
            "id",
            "expense_date",
            "category",
            "amount",
            "payment_method",
            "account",
            "account_name",
            "description",
            "transaction_id",
            "created_at",
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    """
    Input serializer (Swagger-visible).

    account_id is optional: without it the first active account matching
    payment_method pays.
    """

    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    category = serializers.CharField()
    payment_method = serializers.CharField(required=False, default="cash")
    account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    expense_date = serializers.DateField(required=False, allow_null=True)
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)
