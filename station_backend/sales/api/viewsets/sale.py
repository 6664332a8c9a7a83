# sales/api/viewsets/sale.py

import django_filters
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from sales.models import Sale
from sales.serializers import SaleSerializer


class SaleFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="sale_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="sale_date", lookup_expr="lte")
    nozzle_only = django_filters.BooleanFilter(field_name="nozzle", lookup_expr="isnull", exclude=True)

    class Meta:
        model = Sale
        fields = ["product", "nozzle", "payment_method", "account"]


@extend_schema(tags=["sales"])
class SaleViewSet(ReadOnlyModelViewSet):
    """
    Sales are immutable; they are created through the record endpoints only.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = SaleSerializer
    filterset_class = SaleFilter

    queryset = Sale.objects.select_related("product", "nozzle", "account").order_by("-created_at")
