# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import (
    AccountSerializer,
    TransactionSerializer,
    TransferCreateSerializer,
)
from accounting.api.serializers.cards import (
    CardPaymentSerializer,
    CardSettlementSerializer,
    CardTypeSerializer,
)
from accounting.api.serializers.days import (
    CashVarianceLogSerializer,
    DailyOperationSerializer,
    DayCountSerializer,
    DaySummarySerializer,
)
from accounting.api.serializers.expenses import (
    ExpenseCreateSerializer,
    ExpenseSerializer,
)

__all__ = [
    "AccountSerializer",
    "CardPaymentSerializer",
    "CardSettlementSerializer",
    "CardTypeSerializer",
    "CashVarianceLogSerializer",
    "DailyOperationSerializer",
    "DayCountSerializer",
    "DaySummarySerializer",
    "ExpenseCreateSerializer",
    "ExpenseSerializer",
    "TransactionSerializer",
    "TransferCreateSerializer",
]
