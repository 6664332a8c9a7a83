# sales/models/sale.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Sale(models.Model):
    """
    Represents one applied sale (counter sale or nozzle reading).

    GUARANTEES:
    - Immutable financial record (no updates, no deletes)
    - Stock is mutated ONLY via the ledger coordinator
    - cogs_per_unit is the weighted-average cost snapshot at sale time

    NOZZLE READINGS:
    - nozzle / opening_reading / closing_reading are set when the sale was
      derived from a meter reading (quantity = closing - opening)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated receipt number",
    )

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="sales",
    )

    nozzle = models.ForeignKey(
        "products.Nozzle",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
    )
    opening_reading = models.DecimalField(
        max_digits=14, decimal_places=3, null=True, blank=True
    )
    closing_reading = models.DecimalField(
        max_digits=14, decimal_places=3, null=True, blank=True
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)
    sale_amount = models.DecimalField(max_digits=16, decimal_places=2)

    cogs_per_unit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Weighted-average cost at the moment of sale.",
    )
    total_cogs = models.DecimalField(max_digits=16, decimal_places=2)
    gross_profit = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        help_text="sale_amount - total_cogs.",
    )

    payment_method = models.CharField(max_length=10, default="cash")
    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
    )

    movement = models.OneToOneField(
        "products.StockMovement",
        on_delete=models.PROTECT,
        related_name="sale",
    )
    transaction = models.OneToOneField(
        "accounting.Transaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sale",
    )

    operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
    )

    notes = models.TextField(blank=True, default="")

    sale_date = models.DateField(default=timezone.localdate)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"]),
            models.Index(fields=["sale_date"]),
            models.Index(fields=["product", "created_at"]),
            models.Index(fields=["payment_method"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_sale_quantity_positive",
            ),
        ]

    @property
    def is_nozzle_reading(self) -> bool:
        return self.nozzle_id is not None

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("Sale quantity must be greater than zero")

        if self.nozzle_id:
            if self.opening_reading is None or self.closing_reading is None:
                raise ValidationError("Nozzle sales require opening and closing readings")
            if self.closing_reading - self.opening_reading != self.quantity:
                raise ValidationError("quantity must equal closing - opening reading")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Sale records are immutable")

        if not self.invoice_no:
            prefix = timezone.now().strftime("SL%Y%m%d")
            self.invoice_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        if self.gross_profit is None and self.sale_amount is not None and self.total_cogs is not None:
            self.gross_profit = Decimal(self.sale_amount) - Decimal(self.total_cogs)

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Sale records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.invoice_no} | {self.sale_amount}"
