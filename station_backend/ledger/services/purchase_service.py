# ledger/services/purchase_service.py

"""
PURCHASE (STOCK IN + PAYMENT + SUPPLIER DUE)

One unit of work:
1) lock products, supplier, paying account (global order)
2) paid > 0: account debited + `purchase_payment` transaction
3) PurchaseOrder written with due = total - paid
4) per line: costing -> product position CAS -> `purchase` movement + item
5) unpaid remainder added to the supplier balance
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from accounting.models import Transaction
from accounting.services.account_store import (
    append_transaction,
    apply_balance_delta,
    resolve_account_id,
)
from ledger.events import PurchaseEvent
from ledger.models import LedgerOperation
from ledger.services.coordinator import run_ledger_operation
from ledger.services.costing import ZERO, apply_purchase
from products.models import StockMovement
from products.services.product_ledger import append_movement, position_of, write_position
from purchases.models import PurchaseOrder, PurchaseOrderItem
from purchases.services.supplier_store import apply_supplier_delta

logger = logging.getLogger("ledger")


@dataclass(frozen=True)
class PurchaseResult:
    operation_id: str
    purchase_order: PurchaseOrder
    movements: tuple
    transaction: Transaction | None

    @property
    def movement(self) -> StockMovement:
        return self.movements[0]


def _apply_purchase(unit, event: PurchaseEvent) -> PurchaseResult:
    account_id = None
    if event.paid_amount > ZERO:
        account_id = resolve_account_id(
            payment_method=event.payment_method,
            account_id=event.account_id,
        )

    rows = unit.lock(
        products=[line.product_id for line in event.lines],
        suppliers=[event.supplier_id],
        accounts=[account_id],
    )
    supplier = rows.suppliers[event.supplier_id]
    account = rows.accounts.get(account_id) if account_id else None
    order_id = uuid.uuid4()

    txn = None
    if account is not None:
        apply_balance_delta(account, -event.paid_amount)
        txn = append_transaction(
            transaction_type=Transaction.TYPE_PURCHASE_PAYMENT,
            amount=event.paid_amount,
            from_account=account,
            supplier=supplier,
            payment_method=event.payment_method,
            reference_type="purchase_order",
            reference_id=str(order_id),
            description=f"Payment for purchase {event.invoice_number or order_id}",
            operation=unit.operation,
        )
        unit.touch("account", account.pk)

    order = PurchaseOrder.objects.create(
        id=order_id,
        supplier=supplier,
        invoice_number=event.invoice_number,
        total_amount=event.total_amount,
        paid_amount=event.paid_amount,
        due_amount=event.due_amount,
        payment_method=event.payment_method if account else "",
        account=account,
        transaction=txn,
        notes=event.notes,
        operation=unit.operation,
    )

    movements = []
    for line in event.lines:
        product = rows.products[line.product_id]
        old_avg = product.weighted_avg_cost

        outcome = apply_purchase(position_of(product), line.quantity, line.unit_price)
        write_position(product, quantity=outcome.new_quantity, avg_cost=outcome.new_avg_cost)

        movement = append_movement(
            product,
            movement_type=StockMovement.MovementType.PURCHASE,
            quantity=line.quantity,
            unit_price=line.unit_price,
            operation=unit.operation,
            reference_type="purchase_order",
            reference_id=order.pk,
            notes=event.notes,
        )
        PurchaseOrderItem.objects.create(
            purchase_order=order,
            product=product,
            movement=movement,
            quantity=line.quantity,
            unit_price=line.unit_price,
            line_total=line.line_total,
            old_weighted_avg=old_avg,
            new_weighted_avg=outcome.new_avg_cost,
        )
        movements.append(movement)
        unit.touch("product", product.pk)

    if event.due_amount > ZERO:
        apply_supplier_delta(supplier, event.due_amount)
    unit.touch("supplier", supplier.pk)

    logger.info(
        "Purchase applied",
        extra={
            "purchase_order_id": str(order.pk),
            "supplier_id": str(supplier.pk),
            "total_amount": str(event.total_amount),
            "paid_amount": str(event.paid_amount),
            "due_amount": str(event.due_amount),
            "lines": len(event.lines),
        },
    )

    return PurchaseResult(
        operation_id=str(unit.operation.pk),
        purchase_order=order,
        movements=tuple(movements),
        transaction=txn,
    )


def record_purchase_order(
    *,
    supplier_id,
    lines,
    paid_amount=None,
    payment_method: str | None = None,
    account_id=None,
    invoice_number: str = "",
    notes: str = "",
    idempotency_key: str | None = None,
) -> PurchaseResult:
    """
    Multi-line purchase.

    lines: [{"product_id": ..., "quantity": ..., "unit_price": ...}, ...]
    """
    return run_ledger_operation(
        LedgerOperation.KIND_PURCHASE,
        lambda: PurchaseEvent.build(
            supplier_id=supplier_id,
            lines=lines,
            paid_amount=paid_amount,
            payment_method=payment_method,
            account_id=account_id,
            invoice_number=invoice_number,
            notes=notes,
            idempotency_key=idempotency_key,
        ),
        _apply_purchase,
    )


def record_purchase(
    *,
    product_id,
    quantity,
    unit_price,
    supplier_id,
    account_id=None,
    paid_amount=Decimal("0"),
    payment_method: str | None = None,
    invoice_number: str = "",
    notes: str = "",
    idempotency_key: str | None = None,
) -> PurchaseResult:
    return record_purchase_order(
        supplier_id=supplier_id,
        lines=[{"product_id": product_id, "quantity": quantity, "unit_price": unit_price}],
        paid_amount=paid_amount,
        payment_method=payment_method,
        account_id=account_id,
        invoice_number=invoice_number,
        notes=notes,
        idempotency_key=idempotency_key,
    )
