# accounting/api/views/cards.py

"""
CARD API

GET   /api/accounting/card-types/                 list (?is_active=)
POST  /api/accounting/card-types/                 create
PATCH /api/accounting/card-types/<id>/            rename / tax / deactivate

GET   /api/accounting/card-payments/              list (?status=hold|received&card_type=)
GET   /api/accounting/card-payments/<id>/
POST  /api/accounting/card-payments/<id>/settle/  hold -> received (ledger operation)

Card types are never deleted. A changed tax_percentage applies to new card
sales only; held payments keep the rate they were sold at.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet, ReadOnlyModelViewSet

from accounting.api.serializers import (
    CardPaymentSerializer,
    CardSettlementSerializer,
    CardTypeSerializer,
)
from accounting.models import CardPayment, CardType
from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.card_service import record_card_settlement
from ledger.services.exceptions import LedgerError


@extend_schema(tags=["accounting"])
class CardTypeViewSet(ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CardTypeSerializer
    http_method_names = ["get", "post", "patch", "head", "options"]
    filterset_fields = ["is_active"]

    queryset = CardType.objects.all().order_by("card_name")


@extend_schema(tags=["accounting"])
class CardPaymentViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CardPaymentSerializer
    filterset_fields = ["status", "card_type"]

    queryset = CardPayment.objects.select_related("card_type", "sale", "account").order_by(
        "-payment_date", "-created_at"
    )

    @extend_schema(request=CardSettlementSerializer, responses={201: CardPaymentSerializer})
    @action(detail=True, methods=["post"], url_path="settle")
    def settle(self, request, pk=None):
        s = CardSettlementSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_card_settlement(
                card_payment_id=pk,
                account_id=data.get("account_id"),
                settlement_date=data.get("settlement_date"),
                notes=data.get("notes", ""),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        payment = self.get_queryset().get(pk=result.card_payment.pk)
        out = CardPaymentSerializer(payment).data
        out["operation_id"] = result.operation_id
        return Response(out, status=status.HTTP_201_CREATED)
