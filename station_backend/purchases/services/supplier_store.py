# purchases/services/supplier_store.py

"""
SUPPLIER STORE

Supplier balance = amount currently owed by the station.
Increased by the unpaid part of a purchase, reduced by transfers paid to
the supplier. A negative balance is an advance held by the supplier.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import Sum

from accounting.models import Transaction
from ledger.services.costing import money
from ledger.services.exceptions import SupplierNotFoundError
from ledger.services.locking import lock_rows, versioned_write
from purchases.models import PurchaseOrder, Supplier

_LOOKUP_ERRORS = (ValueError, TypeError, ValidationError)


def get_supplier(supplier_id) -> Supplier:
    try:
        return Supplier.objects.get(pk=supplier_id)
    except (Supplier.DoesNotExist, *_LOOKUP_ERRORS) as exc:
        raise SupplierNotFoundError("Supplier not found", supplier_id=supplier_id) from exc


def lock_suppliers(supplier_ids) -> dict[str, Supplier]:
    locked = lock_rows(
        Supplier, supplier_ids, not_found=SupplierNotFoundError, id_field="supplier_id"
    )
    for supplier_id, supplier in locked.items():
        if not supplier.is_active:
            raise SupplierNotFoundError("Supplier is inactive", supplier_id=supplier_id)
    return locked


def apply_supplier_delta(supplier: Supplier, delta: Decimal) -> Supplier:
    return versioned_write(
        supplier,
        account_balance=money(supplier.account_balance) + money(delta),
    )


def derived_supplier_balance(supplier: Supplier) -> Decimal:
    """Sum of purchase dues minus transfers paid to the supplier."""
    due = (
        PurchaseOrder.objects.filter(supplier=supplier).aggregate(s=Sum("due_amount"))["s"]
        or Decimal("0.00")
    )
    paid = (
        Transaction.objects.filter(
            supplier=supplier,
            transaction_type=Transaction.TYPE_TRANSFER,
        ).aggregate(s=Sum("amount"))["s"]
        or Decimal("0.00")
    )
    return money(due - paid)
