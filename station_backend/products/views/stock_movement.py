# products/views/stock_movement.py

import django_filters
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from products.models import StockMovement
from products.serializers import StockMovementSerializer


class StockMovementFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = StockMovement
        fields = ["product", "movement_type"]


@extend_schema(tags=["products"])
class StockMovementViewSet(ReadOnlyModelViewSet):
    """Append-only inventory log (audit-safe, read-only)."""

    permission_classes = [IsAuthenticated]
    serializer_class = StockMovementSerializer
    filterset_class = StockMovementFilter

    queryset = StockMovement.objects.select_related("product").order_by("-created_at")
