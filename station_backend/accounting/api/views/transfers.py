# accounting/api/views/transfers.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.serializers import TransactionSerializer, TransferCreateSerializer
from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.cash_service import record_transfer
from ledger.services.exceptions import LedgerError


class TransferCreateView(GenericAPIView):
    """Account -> account transfer, or account -> supplier payment."""

    permission_classes = [IsAuthenticated]
    serializer_class = TransferCreateSerializer

    @extend_schema(
        tags=["accounting"],
        request=TransferCreateSerializer,
        responses={201: TransactionSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_transfer(
                from_account_id=data["from_account_id"],
                amount=data["amount"],
                to_account_id=data.get("to_account_id"),
                to_supplier_id=data.get("to_supplier_id"),
                description=data.get("description", ""),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(
            TransactionSerializer(result.transaction).data,
            status=status.HTTP_201_CREATED,
        )
