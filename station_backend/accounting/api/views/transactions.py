# accounting/api/views/transactions.py

"""
TRANSACTION LOG API (READ-ONLY / AUDIT SAFE)

    /api/accounting/transactions/?account=3
    /api/accounting/transactions/?transaction_type=expense&date_from=2026-01-01
"""

import django_filters
from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.serializers import TransactionSerializer
from accounting.models import Transaction


class TransactionFilter(django_filters.FilterSet):
    account = django_filters.NumberFilter(method="filter_account")
    date_from = django_filters.DateFilter(field_name="transaction_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="transaction_date", lookup_expr="lte")

    class Meta:
        model = Transaction
        fields = ["transaction_type", "payment_method", "supplier", "category"]

    def filter_account(self, queryset, name, value):
        return queryset.filter(Q(from_account_id=value) | Q(to_account_id=value))


@extend_schema(tags=["accounting"])
class TransactionViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = TransactionSerializer
    filterset_class = TransactionFilter

    queryset = Transaction.objects.select_related(
        "from_account", "to_account", "supplier"
    ).order_by("-created_at")
