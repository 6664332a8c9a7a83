# purchases/models.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from ledger.guards import LedgerCachedFieldsMixin
from products.models.product import Product

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


class Supplier(LedgerCachedFieldsMixin, models.Model):
    """
    Supplier master.

    account_balance is what the station currently owes this supplier:
    + unpaid remainder of each purchase
    - transfers paid to the supplier
    Ledger-managed (versioned CAS); never edited by hand.
    """

    LEDGER_MANAGED_FIELDS = ("account_balance",)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    account_balance = models.DecimalField(
        max_digits=16, decimal_places=2, default=Decimal("0.00")
    )

    is_active = models.BooleanField(default=True)

    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"]),
            models.Index(fields=["is_active"]),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "Supplier name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class PurchaseOrder(models.Model):
    """
    One applied purchase (header).

    Written once by the ledger coordinator in the same unit as the stock
    movements, the payment transaction and the supplier balance change.
    due_amount = total_amount - paid_amount is enforced by the database.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
    )

    invoice_number = models.CharField(max_length=64, blank=True, default="")
    purchase_date = models.DateField(default=timezone.localdate)

    total_amount = models.DecimalField(max_digits=16, decimal_places=2)
    paid_amount = models.DecimalField(
        max_digits=16, decimal_places=2, default=Decimal("0.00")
    )
    due_amount = models.DecimalField(max_digits=16, decimal_places=2)

    payment_method = models.CharField(max_length=10, blank=True, default="")
    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_orders",
    )
    transaction = models.OneToOneField(
        "accounting.Transaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_order",
    )

    notes = models.TextField(blank=True, default="")

    operation = models.ForeignKey(
        "ledger.LedgerOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_orders",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=Decimal("0.00")),
                name="purchase_order_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")),
                name="purchase_order_paid_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(due_amount=F("total_amount") - F("paid_amount")),
                name="purchase_order_due_matches_total_minus_paid",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "created_at"]),
            models.Index(fields=["purchase_date"]),
        ]

    def clean(self):
        if self.paid_amount is not None and self.total_amount is not None:
            if self.paid_amount > self.total_amount:
                raise ValidationError({"paid_amount": "paid_amount cannot exceed total_amount"})
            if self.due_amount != _money(self.total_amount) - _money(self.paid_amount):
                raise ValidationError({"due_amount": "due_amount must equal total - paid"})

        if self.paid_amount and not self.account_id:
            raise ValidationError({"account": "A paid purchase must name the paying account"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("PurchaseOrder records are immutable")
        if self.due_amount is None and self.total_amount is not None:
            self.due_amount = _money(self.total_amount) - _money(self.paid_amount)
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PurchaseOrder records are immutable and cannot be deleted")

    def __str__(self):
        ref = self.invoice_number or str(self.id)[:8]
        return f"{ref} ({self.supplier.name})"


class PurchaseOrderItem(models.Model):
    """
    Purchase line with its costing snapshot.

    old/new_weighted_avg record the product's average cost immediately
    before and after this line was applied (purchase price history).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_items",
    )
    movement = models.OneToOneField(
        "products.StockMovement",
        on_delete=models.PROTECT,
        related_name="purchase_item",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=16, decimal_places=2)

    old_weighted_avg = models.DecimalField(max_digits=12, decimal_places=2)
    new_weighted_avg = models.DecimalField(max_digits=12, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="purchase_order_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=Decimal("0.00")),
                name="purchase_order_item_unit_price_nonnegative",
            ),
            models.UniqueConstraint(
                fields=["purchase_order", "product"],
                name="uniq_purchase_order_product",
            ),
        ]
        indexes = [
            models.Index(fields=["product", "created_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("PurchaseOrderItem records are immutable")
        if self.line_total is None:
            self.line_total = _money(Decimal(str(self.quantity)) * Decimal(str(self.unit_price)))
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PurchaseOrderItem records are immutable and cannot be deleted")

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity} @ {self.unit_price}"
