# products/models/product.py

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from ledger.guards import LedgerCachedFieldsMixin


class Product(LedgerCachedFieldsMixin, models.Model):
    """
    A stocked product (fuel grade or packaged oil / lubricant).

    STOCK MODEL (IMPORTANT):
    - current_stock, weighted_avg_cost and stock_value are CACHES
    - They are derived from the StockMovement log and written only by the
      ledger coordinator through a versioned compare-and-swap
    - current_stock can never go negative (DB check constraint)
    """

    LEDGER_MANAGED_FIELDS = ("current_stock", "weighted_avg_cost", "stock_value")

    class ProductType(models.TextChoices):
        FUEL = "fuel", "Fuel"
        OIL_LUBRICANT = "oil_lubricant", "Oil / Lubricant"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    product_type = models.CharField(
        max_length=20,
        choices=ProductType.choices,
        default=ProductType.FUEL,
    )
    unit = models.CharField(max_length=20, default="litre")

    current_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
        help_text="Ledger-managed. Sum of all stock movements.",
    )
    weighted_avg_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Ledger-managed. Moving weighted-average unit cost.",
    )
    stock_value = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Ledger-managed. current_stock x weighted_avg_cost.",
    )

    # Current/default selling price
    selling_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    minimum_stock_level = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    tank_capacity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        null=True,
        blank=True,
        help_text="Fuel only.",
    )

    is_active = models.BooleanField(default=True)

    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"]),
            models.Index(fields=["product_type", "is_active"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name="chk_product_stock_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(weighted_avg_cost__gte=0),
                name="chk_product_avg_cost_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_product_type_display()})"

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Product name is required")

        if self.selling_price is not None and Decimal(self.selling_price) < 0:
            raise ValidationError({"selling_price": "selling_price cannot be negative"})

        if self.minimum_stock_level is not None and Decimal(self.minimum_stock_level) < 0:
            raise ValidationError({"minimum_stock_level": "minimum_stock_level cannot be negative"})

        if self.tank_capacity is not None:
            if self.product_type != self.ProductType.FUEL:
                raise ValidationError({"tank_capacity": "Only fuel products have a tank"})
            if Decimal(self.tank_capacity) <= 0:
                raise ValidationError({"tank_capacity": "tank_capacity must be greater than zero"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_fuel(self) -> bool:
        return self.product_type == self.ProductType.FUEL

    @property
    def is_low_stock(self) -> bool:
        return Decimal(self.current_stock or 0) <= Decimal(self.minimum_stock_level or 0)

    @property
    def tank_utilisation(self) -> Decimal | None:
        """Percent of tank capacity currently filled (fuel only)."""
        if not self.tank_capacity:
            return None
        pct = Decimal(self.current_stock or 0) * Decimal("100") / Decimal(self.tank_capacity)
        return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
