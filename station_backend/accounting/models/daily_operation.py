# accounting/models/daily_operation.py

"""
======================================================
PATH: accounting/models/daily_operation.py
======================================================
CASH DRAWER DAY (OPEN / CLOSE)

One row per business date. The day is opened with a physical cash count
and closed with another one; each count is compared with what the ledger
says should be in the drawer.

Lifecycle:
    open --(day close)--> closed

Rules:
- At most one day is open at any time (partial unique index)
- The opening expectation is the previous closed day's counted cash
- Rows change only through the day-open / day-close operations
- Every non-zero count difference is kept in CashVarianceLog
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


def _money_field(**kwargs):
    return models.DecimalField(max_digits=16, decimal_places=2, **kwargs)


class DailyOperation(models.Model):
    STATUS_OPEN = "open"
    STATUS_CLOSED = "closed"

    STATUSES = [
        (STATUS_OPEN, "Open"),
        (STATUS_CLOSED, "Closed"),
    ]

    operation_date = models.DateField(unique=True)
    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_OPEN)

    opening_cash_expected = _money_field(default=Decimal("0.00"))
    opening_cash_actual = _money_field(default=Decimal("0.00"))
    opening_cash_variance = _money_field(default=Decimal("0.00"))
    opening_note = models.TextField(blank=True, default="")

    closing_cash_expected = _money_field(null=True, blank=True)
    closing_cash_actual = _money_field(null=True, blank=True)
    closing_cash_variance = _money_field(null=True, blank=True)
    closing_note = models.TextField(blank=True, default="")

    # Day totals, snapshotted at close.
    total_sales = _money_field(null=True, blank=True)
    cash_sales = _money_field(null=True, blank=True)
    card_sales = _money_field(null=True, blank=True)
    total_expenses = _money_field(null=True, blank=True)
    cash_in = _money_field(null=True, blank=True)
    cash_out = _money_field(null=True, blank=True)

    opened_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    open_operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="opened_days",
    )
    close_operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="closed_days",
    )

    version = models.PositiveIntegerField(default=0, editable=False)

    class Meta:
        ordering = ["-operation_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["status"],
                condition=Q(status="open"),
                name="uniq_daily_operation_single_open_day",
            ),
        ]

    def __str__(self):
        return f"{self.operation_date} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status == self.STATUS_OPEN

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Daily operations change only through day open / close")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Daily operations cannot be deleted")


class CashVarianceLog(models.Model):
    """Append-only record of a cash count that did not match the ledger."""

    TYPE_OPENING = "opening_cash"
    TYPE_CLOSING = "closing_cash"

    VARIANCE_TYPES = [
        (TYPE_OPENING, "Opening Cash"),
        (TYPE_CLOSING, "Closing Cash"),
    ]

    day = models.ForeignKey(
        DailyOperation,
        on_delete=models.PROTECT,
        related_name="variances",
    )
    variance_date = models.DateField()
    variance_type = models.CharField(max_length=20, choices=VARIANCE_TYPES)

    expected_amount = _money_field()
    actual_amount = _money_field()
    difference = _money_field(help_text="actual - expected")
    variance_percentage = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Difference as a percentage of expected; empty when nothing was expected.",
    )
    within_tolerance = models.BooleanField(default=True)
    explanation = models.TextField(blank=True, default="")

    operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cash_variances",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-variance_date", "-created_at"]
        indexes = [
            models.Index(fields=["variance_date", "variance_type"]),
        ]

    def __str__(self):
        return f"{self.variance_type} {self.variance_date}: {self.difference}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Cash variance records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Cash variance records are immutable and cannot be deleted")
