# accounting/models/card.py

"""
======================================================
PATH: accounting/models/card.py
======================================================
CARD PAYMENTS (HELD UNTIL SETTLEMENT)

A card sale does not credit any account. The processor holds the money
and pays it out later, minus its processing tax.

Lifecycle:
    hold --(card settlement)--> received

Rules:
- amount is the gross sale amount; tax_percentage is snapshotted from the
  card type when the sale is made
- net_amount = amount - tax_amount (checked by ledger reconciliation)
- Rows are created by the sale and moved to `received` ONLY by the
  card-settlement operation (versioned CAS); never edited, never deleted
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q


class CardType(models.Model):
    """A card scheme / terminal the station accepts (Visa, Master, ...)."""

    card_name = models.CharField(max_length=60, unique=True)
    tax_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text="Processing tax withheld on settlement, in percent.",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["card_name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(tax_percentage__gte=0) & Q(tax_percentage__lte=100),
                name="chk_card_type_tax_range",
            ),
        ]

    def __str__(self):
        return f"{self.card_name} ({self.tax_percentage}%)"

    def save(self, *args, **kwargs):
        self.card_name = (self.card_name or "").strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Card types cannot be deleted; deactivate them instead")


class CardPayment(models.Model):
    STATUS_HOLD = "hold"
    STATUS_RECEIVED = "received"

    STATUSES = [
        (STATUS_HOLD, "On Hold"),
        (STATUS_RECEIVED, "Received"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    card_type = models.ForeignKey(
        CardType,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    sale = models.OneToOneField(
        "sales.Sale",
        on_delete=models.PROTECT,
        related_name="card_payment",
    )

    amount = models.DecimalField(max_digits=16, decimal_places=2)
    tax_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=16, decimal_places=2)
    net_amount = models.DecimalField(max_digits=16, decimal_places=2)

    payment_date = models.DateField()

    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_HOLD)

    # Set by settlement.
    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="card_settlements",
    )
    received_date = models.DateField(null=True, blank=True)
    settlement_transaction = models.OneToOneField(
        "accounting.Transaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="card_payment",
    )
    tax_expense = models.OneToOneField(
        "accounting.Expense",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="card_payment",
    )
    notes = models.TextField(blank=True, default="")

    operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="card_payments",
    )

    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-payment_date", "-created_at"]
        indexes = [
            models.Index(fields=["status", "payment_date"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_card_payment_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(tax_amount__gte=0) & Q(net_amount__gte=0),
                name="chk_card_payment_split_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(status="hold") | Q(account__isnull=False),
                name="chk_card_payment_received_has_account",
            ),
        ]

    def __str__(self):
        return f"{self.card_type.card_name} {self.amount} ({self.status})"

    @property
    def is_on_hold(self) -> bool:
        return self.status == self.STATUS_HOLD

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Card payments change only through card settlement")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Card payments cannot be deleted")
