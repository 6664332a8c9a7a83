# ledger/models.py

"""
LEDGER OPERATION (IDEMPOTENCY + AUDIT ANCHOR)

One row per APPLIED business event. Written inside the same atomic unit as
the stock/balance mutation, so a rolled-back operation leaves no row.

Guarantees:
- idempotency_key is unique (NULL allowed for callers that do not supply one)
- Immutable once created (no updates, no deletes)
"""

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class LedgerOperation(models.Model):
    KIND_PURCHASE = "purchase"
    KIND_SALE = "sale"
    KIND_NOZZLE_SALE = "nozzle_sale"
    KIND_ADJUSTMENT = "adjustment"
    KIND_INITIAL_STOCK = "initial_stock"
    KIND_EXPENSE = "expense"
    KIND_TRANSFER = "transfer"
    KIND_CARD_SETTLEMENT = "card_settlement"
    KIND_DAY_OPEN = "day_open"
    KIND_DAY_CLOSE = "day_close"

    KINDS = [
        (KIND_PURCHASE, "Purchase"),
        (KIND_SALE, "Sale"),
        (KIND_NOZZLE_SALE, "Nozzle Reading Sale"),
        (KIND_ADJUSTMENT, "Stock Adjustment"),
        (KIND_INITIAL_STOCK, "Initial Stock"),
        (KIND_EXPENSE, "Expense"),
        (KIND_TRANSFER, "Transfer"),
        (KIND_CARD_SETTLEMENT, "Card Settlement"),
        (KIND_DAY_OPEN, "Day Open"),
        (KIND_DAY_CLOSE, "Day Close"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    kind = models.CharField(max_length=20, choices=KINDS)

    idempotency_key = models.CharField(
        max_length=128,
        unique=True,
        null=True,
        blank=True,
        help_text="Caller-supplied key; a replay with the same key is rejected.",
    )

    payload = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["kind", "created_at"]),
        ]

    def __str__(self):
        return f"{self.kind} {self.id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("LedgerOperation records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerOperation records are immutable and cannot be deleted")
