# products/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- quantity is signed: purchase / initial are IN (> 0), sale is OUT (< 0),
  adjustment may go either way but is never 0
- weighted_avg_after / balance_after snapshot the product position right
  after this movement was applied
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        SALE = "sale", "Sale"
        INITIAL = "initial", "Initial Stock"
        ADJUSTMENT = "adjustment", "Manual Adjustment"

    # +1 = must be positive, -1 = must be negative, 0 = either (non-zero)
    DIRECTION = {
        MovementType.PURCHASE: 1,
        MovementType.INITIAL: 1,
        MovementType.SALE: -1,
        MovementType.ADJUSTMENT: 0,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        "products.Product", on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=20, choices=MovementType.choices)

    quantity = models.DecimalField(max_digits=14, decimal_places=3)

    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Purchase price (IN) or cost snapshot (OUT) per unit.",
    )

    weighted_avg_after = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=14, decimal_places=3)

    reference_type = models.CharField(max_length=30, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")

    notes = models.TextField(blank=True, default="")

    operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["created_at"]),
            models.Index(fields=["movement_type"]),
            models.Index(fields=["product", "created_at"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]

    def clean(self):
        if self.quantity is None or self.quantity == 0:
            raise ValidationError("quantity cannot be 0")

        direction = self.DIRECTION.get(self.movement_type)
        if direction is None:
            raise ValidationError({"movement_type": "Unknown movement type"})
        if direction > 0 and self.quantity < 0:
            raise ValidationError(f"{self.movement_type} movements must be positive")
        if direction < 0 and self.quantity > 0:
            raise ValidationError(f"{self.movement_type} movements must be negative")

        if self.movement_type == self.MovementType.ADJUSTMENT and not (self.notes or "").strip():
            raise ValidationError("Adjustments require a reason")

        if self.balance_after is not None and self.balance_after < 0:
            raise ValidationError("balance_after cannot be negative")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def is_inbound(self) -> bool:
        return self.quantity > 0

    @property
    def total_cost(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * abs(self.quantity or 0)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity}"
