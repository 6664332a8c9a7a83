# accounting/models/expense.py

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Expense(models.Model):
    """
    Operating expense (rent, salary, generator fuel, ...).

    Created only by the ledger coordinator, together with the `expense`
    Transaction that debits the paying account.

    Card processing tax is the exception: the processor keeps it before
    paying out, so that expense has neither an account nor a transaction.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    category = models.CharField(max_length=100)
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expenses",
    )
    payment_method = models.CharField(max_length=10)

    description = models.TextField(blank=True, default="")
    expense_date = models.DateField(default=timezone.localdate)

    transaction = models.OneToOneField(
        "accounting.Transaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expense",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-expense_date", "-created_at"]
        indexes = [
            models.Index(fields=["expense_date"]),
            models.Index(fields=["category"]),
        ]

    def __str__(self):
        return f"{self.category} {self.amount} ({self.expense_date})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Expense records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Expense records are immutable and cannot be deleted")
