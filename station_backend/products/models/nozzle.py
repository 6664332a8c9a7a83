# products/models/nozzle.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ledger.guards import LedgerCachedFieldsMixin

from .product import Product


class Nozzle(LedgerCachedFieldsMixin, models.Model):
    """
    A dispenser nozzle bound to one fuel product.

    current_reading is the cumulative meter value; a nozzle sale advances it
    to the closing reading in the same unit that deducts the stock.
    """

    LEDGER_MANAGED_FIELDS = ("current_reading",)

    class Side(models.TextChoices):
        A = "A", "Side A"
        B = "B", "Side B"

    nozzle_number = models.CharField(max_length=20, unique=True)
    pump_number = models.PositiveIntegerField()
    side = models.CharField(max_length=1, choices=Side.choices, default=Side.A)

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="nozzles",
    )

    initial_reading = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    current_reading = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
        help_text="Ledger-managed meter value.",
    )

    is_active = models.BooleanField(default=True)

    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["pump_number", "side", "nozzle_number"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_reading__gte=models.F("initial_reading")),
                name="chk_nozzle_reading_not_below_initial",
            ),
        ]

    def __str__(self):
        return f"Nozzle {self.nozzle_number} (pump {self.pump_number}{self.side})"

    def clean(self):
        if self.product_id:
            product_type = (
                Product.objects.filter(pk=self.product_id)
                .values_list("product_type", flat=True)
                .first()
            )
            if product_type and product_type != Product.ProductType.FUEL:
                raise ValidationError({"product": "Nozzles dispense fuel products only"})

    def save(self, *args, **kwargs):
        if self._state.adding and not self.current_reading:
            self.current_reading = self.initial_reading
        self.full_clean()
        return super().save(*args, **kwargs)
