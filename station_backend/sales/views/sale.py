# sales/views/sale.py

"""
RECORD SALE ENDPOINTS

POST /api/sales/record/
    Counter sale of a product (litres / units).

POST /api/sales/nozzle-readings/
    Sale derived from a dispenser reading. Requires the X-Admin-Pin header.

GET /api/sales/nozzle-readings/preview/?nozzle_id=<id>&closing_reading=<n>
    Quantity and amount a reading would produce; nothing is written.

Card sales (payment_method=card) name a card_type_id and are held until
settlement.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.exceptions import LedgerError
from ledger.services.sale_service import preview_nozzle_sale, record_nozzle_sale, record_sale
from sales.serializers import (
    NozzleReadingPreviewQuerySerializer,
    NozzleReadingPreviewSerializer,
    NozzleReadingSerializer,
    SaleCreateSerializer,
    SaleSerializer,
)
from sales.views.permissions import HasAdminPin


def _sale_response(result):
    data = SaleSerializer(result.sale).data
    data["operation_id"] = result.operation_id
    return Response(data, status=status.HTTP_201_CREATED)


class RecordSaleView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SaleCreateSerializer

    @extend_schema(tags=["sales"], request=SaleCreateSerializer, responses={201: SaleSerializer})
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_sale(
                product_id=data["product_id"],
                quantity=data["quantity"],
                selling_price=data["selling_price"],
                payment_method=data.get("payment_method"),
                account_id=data.get("account_id"),
                card_type_id=data.get("card_type_id"),
                notes=data.get("notes", ""),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)
        return _sale_response(result)


class NozzleReadingView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasAdminPin]
    serializer_class = NozzleReadingSerializer

    @extend_schema(
        tags=["sales"],
        request=NozzleReadingSerializer,
        responses={201: SaleSerializer},
        parameters=[
            OpenApiParameter(
                name="X-Admin-Pin",
                type=str,
                location=OpenApiParameter.HEADER,
                required=True,
                description="Shared admin PIN (ADMIN_PIN setting).",
            )
        ],
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_nozzle_sale(
                nozzle_id=data["nozzle_id"],
                closing_reading=data["closing_reading"],
                payment_method=data.get("payment_method"),
                selling_price=data.get("selling_price"),
                account_id=data.get("account_id"),
                card_type_id=data.get("card_type_id"),
                reading_date=data.get("reading_date"),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)
        return _sale_response(result)


class NozzleReadingPreviewView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = NozzleReadingPreviewSerializer

    @extend_schema(
        tags=["sales"],
        parameters=[NozzleReadingPreviewQuerySerializer],
        responses={200: NozzleReadingPreviewSerializer},
    )
    def get(self, request):
        s = NozzleReadingPreviewQuerySerializer(data=request.query_params)
        s.is_valid(raise_exception=True)

        try:
            preview = preview_nozzle_sale(**s.validated_data)
        except LedgerError as exc:
            return ledger_error_response(exc)
        return Response(NozzleReadingPreviewSerializer(preview).data)
