# accounting/api/serializers/days.py

from rest_framework import serializers

from accounting.models import CashVarianceLog, DailyOperation


class CashVarianceLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = CashVarianceLog
        fields = [
            "id",
            "day",
            "variance_date",
            "variance_type",
            "expected_amount",
            "actual_amount",
            "difference",
            "variance_percentage",
            "within_tolerance",
            "explanation",
            "created_at",
        ]
        read_only_fields = fields


class DailyOperationSerializer(serializers.ModelSerializer):
    variances = CashVarianceLogSerializer(many=True, read_only=True)

    class Meta:
        model = DailyOperation
        fields = [
            "id",
            "operation_date",
            "status",
            "opening_cash_expected",
            "opening_cash_actual",
            "opening_cash_variance",
            "opening_note",
            "closing_cash_expected",
            "closing_cash_actual",
            "closing_cash_variance",
            "closing_note",
            "total_sales",
            "cash_sales",
            "card_sales",
            "total_expenses",
            "cash_in",
            "cash_out",
            "opened_at",
            "closed_at",
            "variances",
        ]
        read_only_fields = fields


class DayCountSerializer(serializers.Serializer):
    """
    Input for opening or closing a day.

    `note` is required only when the count misses the expected cash by
    more than the tolerance.
    """

    counted_cash = serializers.DecimalField(max_digits=16, decimal_places=2)
    operation_date = serializers.DateField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class DaySummarySerializer(serializers.Serializer):
    operation_date = serializers.DateField()
    status = serializers.CharField()
    opening_cash_actual = serializers.DecimalField(max_digits=16, decimal_places=2)
    closing_cash_expected = serializers.DecimalField(max_digits=16, decimal_places=2)
    tolerance = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    cash_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    card_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_expenses = serializers.DecimalField(max_digits=16, decimal_places=2)
    cash_in = serializers.DecimalField(max_digits=16, decimal_places=2)
    cash_out = serializers.DecimalField(max_digits=16, decimal_places=2)
