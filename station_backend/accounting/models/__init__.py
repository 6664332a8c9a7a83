# accounting/models/__init__.py

from .account import Account
from .card import CardPayment, CardType
from .daily_operation import CashVarianceLog, DailyOperation
from .expense import Expense
from .transaction import Transaction

__all__ = [
    "Account",
    "CardPayment",
    "CardType",
    "CashVarianceLog",
    "DailyOperation",
    "Expense",
    "Transaction",
]
