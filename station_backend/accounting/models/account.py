# accounting/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from ledger.guards import LedgerCachedFieldsMixin


class Account(LedgerCachedFieldsMixin, models.Model):
    """
    A cash-like money account (cash drawer, bank account).

    Guarantees:
    - current_balance is a cache: opening_balance + signed sum of Transactions
    - current_balance is written ONLY by the ledger coordinator (versioned CAS)
    - Accounts are never deleted, only deactivated
    """

    LEDGER_MANAGED_FIELDS = ("current_balance",)

    TYPE_CASH = "cash"
    TYPE_BANK = "bank"

    ACCOUNT_TYPES = [
        (TYPE_CASH, "Cash"),
        (TYPE_BANK, "Bank"),
    ]

    STATUS_ACTIVE = "active"
    STATUS_INACTIVE = "inactive"

    STATUSES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    account_type = models.CharField(max_length=10, choices=ACCOUNT_TYPES)
    name = models.CharField(max_length=150)

    opening_balance = models.DecimalField(
        max_digits=16, decimal_places=2, default=Decimal("0.00")
    )
    current_balance = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Cached balance. Ledger-managed; never edit by hand.",
    )

    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_ACTIVE)

    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["account_type", "status"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.account_type})"

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Account name is required")
        if self.account_type not in {self.TYPE_CASH, self.TYPE_BANK}:
            raise ValidationError({"account_type": "Use 'cash' or 'bank'"})

    def save(self, *args, **kwargs):
        if self._state.adding:
            # A new account starts with no transactions.
            self.current_balance = self.opening_balance
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Accounts cannot be deleted; set status to inactive")
