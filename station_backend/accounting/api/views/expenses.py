# accounting/api/views/expenses.py

"""
EXPENSES API

GET  /api/accounting/expenses/
    - Read-only list (?category=&expense_date=)

POST /api/accounting/expenses/
    - Debits the paying account + appends an `expense` transaction (atomic)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.serializers import ExpenseCreateSerializer, ExpenseSerializer
from accounting.models import Expense
from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.cash_service import record_expense
from ledger.services.exceptions import LedgerError


class ExpenseListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ExpenseSerializer
    filterset_fields = ["category", "expense_date", "payment_method"]

    queryset = Expense.objects.select_related("account").order_by("-expense_date", "-created_at")

    @extend_schema(tags=["accounting"], responses=ExpenseSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(ExpenseSerializer(page, many=True).data)
        return Response(ExpenseSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=ExpenseCreateSerializer,
        responses={201: ExpenseSerializer},
    )
    def post(self, request):
        s = ExpenseCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = record_expense(
                amount=data["amount"],
                category=data["category"],
                payment_method=data.get("payment_method"),
                account_id=data.get("account_id"),
                description=data.get("description", ""),
                expense_date=data.get("expense_date"),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(ExpenseSerializer(result.expense).data, status=status.HTTP_201_CREATED)
