# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Product catalogue endpoints (create / list / update, never delete)
- Ledger actions on a product:
    POST /products/products/<id>/adjust/         signed stock adjustment
    POST /products/products/<id>/initial-stock/  opening stock for a new product
    GET  /products/products/<id>/movements/      movement history
    GET  /products/products/low-stock/           at or below minimum level

Stock position fields are read-only here; only the ledger writes them.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.exceptions import LedgerError
from ledger.services.stock_service import record_adjustment, record_initial_stock
from products.models import Product, StockMovement
from products.serializers import (
    InitialStockSerializer,
    ProductSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
)
from products.services.product_ledger import low_stock_queryset


@extend_schema(tags=["products"])
class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "head", "options"]
    filterset_fields = ["product_type", "is_active"]

    def get_queryset(self):
        return Product.objects.all().order_by("name")

    def _movement_response(self, result):
        movement = StockMovement.objects.select_related("product").get(pk=result.movement.pk)
        data = StockMovementSerializer(movement).data
        data["operation_id"] = result.operation_id
        return Response(data, status=status.HTTP_201_CREATED)

    @extend_schema(request=StockAdjustmentSerializer, responses={201: StockMovementSerializer})
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        s = StockAdjustmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_adjustment(
                product_id=pk,
                quantity_delta=data["quantity_delta"],
                reason=data["reason"],
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)
        return self._movement_response(result)

    @extend_schema(request=InitialStockSerializer, responses={201: StockMovementSerializer})
    @action(detail=True, methods=["post"], url_path="initial-stock")
    def initial_stock(self, request, pk=None):
        s = InitialStockSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_initial_stock(
                product_id=pk,
                quantity=data["quantity"],
                unit_cost=data["unit_cost"],
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)
        return self._movement_response(result)

    @extend_schema(responses=StockMovementSerializer(many=True))
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        product = self.get_object()
        qs = product.stock_movements.select_related("product").order_by("-created_at")
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(StockMovementSerializer(page, many=True).data)
        return Response(StockMovementSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        return Response(ProductSerializer(low_stock_queryset(), many=True).data)
