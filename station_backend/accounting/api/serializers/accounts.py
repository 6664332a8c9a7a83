# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models import Account, Transaction


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = [
            "id",
            "account_type",
            "name",
            "opening_balance",
            "current_balance",
            "status",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("id", "current_balance", "version", "created_at", "updated_at")

    def validate(self, attrs):
        if self.instance is not None:
            # Balance history is fixed once the account exists.
            for field in ("opening_balance", "account_type"):
                if field in attrs and attrs[field] != getattr(self.instance, field):
                    raise serializers.ValidationError({field: "Cannot be changed after creation"})
        return attrs

    def update(self, instance, validated_data):
        # Never rewrite the cached balance from a possibly stale instance.
        fields = [f for f in ("name", "status") if f in validated_data]
        for field in fields:
            setattr(instance, field, validated_data[field])
        if fields:
            instance.full_clean()
            instance.save(update_fields=[*fields, "updated_at"])
        return instance


class TransactionSerializer(serializers.ModelSerializer):
    from_account_name = serializers.CharField(source="from_account.name", read_only=True, default=None)
    to_account_name = serializers.CharField(source="to_account.name", read_only=True, default=None)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "transaction_type",
            "amount",
            "from_account",
            "from_account_name",
            "to_account",
            "to_account_name",
            "supplier",
            "supplier_name",
            "payment_method",
            "category",
            "reference_type",
            "reference_id",
            "description",
            "transaction_date",
            "operation",
            "created_at",
        ]
        read_only_fields = fields


class TransferCreateSerializer(serializers.Serializer):
    from_account_id = serializers.CharField()
    to_account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    to_supplier_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)
