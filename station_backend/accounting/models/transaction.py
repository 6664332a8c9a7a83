# accounting/models/transaction.py

"""
======================================================
PATH: accounting/models/transaction.py
======================================================
TRANSACTION LOG (CASH / BANK)

Append-only record of every money movement.

Rules:
- amount is a positive magnitude; the sign comes from the side
  (from_account = debit, to_account = credit)
- A transfer between two accounts is ONE row touching both sides
- Immutable once created (no updates, no deletes)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Transaction(models.Model):
    TYPE_PURCHASE_PAYMENT = "purchase_payment"
    TYPE_SALE_RECEIPT = "sale_receipt"
    TYPE_EXPENSE = "expense"
    TYPE_TRANSFER = "transfer"
    TYPE_CARD_SETTLEMENT = "card_settlement"

    TRANSACTION_TYPES = [
        (TYPE_PURCHASE_PAYMENT, "Purchase Payment"),
        (TYPE_SALE_RECEIPT, "Sale Receipt"),
        (TYPE_EXPENSE, "Expense"),
        (TYPE_TRANSFER, "Transfer"),
        (TYPE_CARD_SETTLEMENT, "Card Settlement"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPES)

    amount = models.DecimalField(max_digits=16, decimal_places=2)

    from_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="outgoing_transactions",
    )
    to_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_transactions",
    )
    supplier = models.ForeignKey(
        "purchases.Supplier",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )

    payment_method = models.CharField(max_length=10, blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")

    reference_type = models.CharField(max_length=30, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")

    description = models.TextField(blank=True, default="")

    # Business date (sale / expense / purchase date); reports window on it.
    transaction_date = models.DateField(default=timezone.localdate)

    operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["transaction_type", "created_at"]),
            models.Index(fields=["transaction_date"]),
            models.Index(fields=["from_account", "created_at"]),
            models.Index(fields=["to_account", "created_at"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_transaction_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(from_account__isnull=False) | Q(to_account__isnull=False),
                name="chk_transaction_has_account_side",
            ),
        ]

    def __str__(self):
        return f"{self.transaction_type} {self.amount}"

    def clean(self):
        if self.amount is None or self.amount <= 0:
            raise ValidationError("Transaction amount must be greater than zero")

        if not self.from_account_id and not self.to_account_id:
            raise ValidationError("Transaction must debit or credit at least one account")

        if self.from_account_id and self.from_account_id == self.to_account_id:
            raise ValidationError("Transaction cannot debit and credit the same account")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Transaction records are immutable")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Transaction records are immutable and cannot be deleted")

    def signed_amount_for(self, account) -> Decimal:
        """Effect of this row on one account's balance (0 when not involved)."""
        account_id = getattr(account, "pk", account)
        delta = Decimal("0.00")
        if self.to_account_id == account_id:
            delta += self.amount
        if self.from_account_id == account_id:
            delta -= self.amount
        return delta
