# reports/api/views.py

"""
REPORTS API (READ-ONLY)

GET /api/reports/summary/?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD
        &product_id=<uuid>&supplier_id=<uuid>&payment_method=cash|bank|card
GET /api/reports/reconciliation/
GET /api/reports/low-stock/

Decimals are rendered as strings (exact).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from reports.api.serializers import PeriodReportQuerySerializer
from reports.services.aggregator import build_period_report, low_stock_products, reconcile_ledger


def _jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class PeriodReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"], parameters=[PeriodReportQuerySerializer])
    def get(self, request):
        s = PeriodReportQuerySerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        report = build_period_report(
            date_from=data.get("date_from"),
            date_to=data.get("date_to"),
            product_id=data.get("product_id"),
            payment_method=data.get("payment_method"),
            supplier_id=data.get("supplier_id"),
        )
        return Response(_jsonable(report))


class ReconciliationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"])
    def get(self, request):
        warnings = reconcile_ledger()
        return Response({"ok": not warnings, "warnings": _jsonable(warnings)})


class LowStockView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["reports"])
    def get(self, request):
        return Response(_jsonable(low_stock_products()))
