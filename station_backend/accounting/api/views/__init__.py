# accounting/api/views/__init__.py

"""
accounting.api.views package

Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.accounts import AccountViewSet
from accounting.api.views.cards import CardPaymentViewSet, CardTypeViewSet
from accounting.api.views.days import CashVarianceLogViewSet, DailyOperationViewSet
from accounting.api.views.expenses import ExpenseListCreateView
from accounting.api.views.transactions import TransactionViewSet
from accounting.api.views.transfers import TransferCreateView

__all__ = [
    "AccountViewSet",
    "CardPaymentViewSet",
    "CardTypeViewSet",
    "CashVarianceLogViewSet",
    "DailyOperationViewSet",
    "ExpenseListCreateView",
    "TransactionViewSet",
    "TransferCreateView",
]
