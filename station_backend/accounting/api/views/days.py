# accounting/api/views/days.py

"""
CASH DRAWER DAY API

GET  /api/accounting/days/                  history (?status=open|closed)
GET  /api/accounting/days/<id>/
GET  /api/accounting/days/current/          the open day + what closing would expect
POST /api/accounting/days/open/             {"counted_cash": ..., "note": ...}
POST /api/accounting/days/close/            {"counted_cash": ..., "note": ...}
GET  /api/accounting/cash-variances/        variance history (?variance_type=&variance_date=)
"""

from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.serializers import (
    CashVarianceLogSerializer,
    DailyOperationSerializer,
    DayCountSerializer,
    DaySummarySerializer,
)
from accounting.models import CashVarianceLog, DailyOperation
from ledger.api.errors import idempotency_key_from, ledger_error_response
from ledger.services.day_service import close_day, current_day, day_summary, open_day
from ledger.services.exceptions import LedgerError


@extend_schema(tags=["accounting"])
class DailyOperationViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = DailyOperationSerializer
    filterset_fields = ["status"]

    queryset = DailyOperation.objects.prefetch_related("variances").order_by("-operation_date")

    def _run(self, request, operation):
        s = DayCountSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = operation(
                counted_cash=data["counted_cash"],
                operation_date=data.get("operation_date"),
                note=data.get("note", ""),
                idempotency_key=idempotency_key_from(request, data),
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        day = self.get_queryset().get(pk=result.day.pk)
        out = DailyOperationSerializer(day).data
        out["operation_id"] = result.operation_id
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(request=DayCountSerializer, responses={201: DailyOperationSerializer})
    @action(detail=False, methods=["post"], url_path="open")
    def open(self, request):
        return self._run(request, open_day)

    @extend_schema(request=DayCountSerializer, responses={201: DailyOperationSerializer})
    @action(detail=False, methods=["post"], url_path="close")
    def close(self, request):
        return self._run(request, close_day)

    @extend_schema(
        responses={
            200: inline_serializer(
                name="CurrentDay",
                fields={
                    "day": DailyOperationSerializer(allow_null=True),
                    "summary": DaySummarySerializer(allow_null=True),
                },
            )
        }
    )
    @action(detail=False, methods=["get"], url_path="current")
    def current(self, request):
        day = current_day()
        if day is None:
            return Response({"day": None, "summary": None})
        return Response(
            {
                "day": DailyOperationSerializer(day).data,
                "summary": DaySummarySerializer(day_summary(day)).data,
            }
        )


@extend_schema(tags=["accounting"])
class CashVarianceLogViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CashVarianceLogSerializer
    filterset_fields = ["variance_type", "variance_date", "within_tolerance"]

    queryset = CashVarianceLog.objects.select_related("day").order_by("-variance_date", "-created_at")
