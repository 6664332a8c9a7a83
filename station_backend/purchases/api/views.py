# purchases/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView, RetrieveUpdateAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.exceptions import LedgerError
from ledger.services.purchase_service import record_purchase_order
from purchases.api.serializers import (
    PurchaseCreateSerializer,
    PurchaseOrderSerializer,
    SupplierSerializer,
)
from purchases.models import PurchaseOrder, Supplier


class SupplierListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.filter(is_active=True).order_by("name")
        return Response(
            SupplierSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["purchases"],
        request=SupplierSerializer,
        responses={201: SupplierSerializer},
    )
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = s.save()
        return Response(
            SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["purchases"])
class SupplierDetailView(RetrieveUpdateAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer
    http_method_names = ["get", "patch", "head", "options"]
    lookup_url_kwarg = "supplier_id"

    queryset = Supplier.objects.all()


class PurchaseOrderListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseOrderSerializer
    filterset_fields = ["supplier", "purchase_date", "payment_method"]

    queryset = (
        PurchaseOrder.objects.select_related("supplier")
        .prefetch_related("items", "items__product")
        .order_by("-created_at")
    )

    @extend_schema(tags=["purchases"], responses=PurchaseOrderSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(PurchaseOrderSerializer(page, many=True).data)
        return Response(
            PurchaseOrderSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["purchases"],
        request=PurchaseCreateSerializer,
        responses={201: PurchaseOrderSerializer},
    )
    def post(self, request):
        s = PurchaseCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_purchase_order(
                supplier_id=data["supplier_id"],
                lines=[dict(line) for line in data["items"]],
                paid_amount=data.get("paid_amount"),
                payment_method=data.get("payment_method"),
                account_id=data.get("account_id"),
                invoice_number=data.get("invoice_number", ""),
                notes=data.get("notes", ""),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        order = self.get_queryset().get(pk=result.purchase_order.pk)
        return Response(
            PurchaseOrderSerializer(order).data, status=status.HTTP_201_CREATED
        )
