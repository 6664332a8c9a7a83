# ledger/services/cash_service.py

"""
MONEY-ONLY OPERATIONS

Expense:
- paying account debited + `expense` transaction + Expense row
- the transaction references the expense id and carries the expense date

Transfer (exactly one destination):
- account -> account: one `transfer` row with both sides set
- account -> supplier: one `transfer` row (from_account + supplier),
  supplier's owed balance reduced by the amount
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from django.utils import timezone

from accounting.models import Expense, Transaction
from accounting.services.account_store import (
    append_transaction,
    apply_balance_delta,
    resolve_account_id,
)
from ledger.events import ExpenseEvent, TransferEvent
from ledger.models import LedgerOperation
from ledger.services.coordinator import run_ledger_operation
from ledger.services.exceptions import InvalidOperationError
from purchases.services.supplier_store import apply_supplier_delta

logger = logging.getLogger("ledger")


@dataclass(frozen=True)
class ExpenseResult:
    operation_id: str
    expense: Expense
    transaction: Transaction


@dataclass(frozen=True)
class TransferResult:
    operation_id: str
    transaction: Transaction


def _apply_expense(unit, event: ExpenseEvent) -> ExpenseResult:
    account_id = resolve_account_id(
        payment_method=event.payment_method,
        account_id=event.account_id,
    )
    account = unit.lock(accounts=[account_id]).accounts[account_id]

    expense_id = uuid.uuid4()
    expense_date = event.expense_date or timezone.localdate()

    apply_balance_delta(account, -event.amount)
    txn = append_transaction(
        transaction_type=Transaction.TYPE_EXPENSE,
        amount=event.amount,
        from_account=account,
        payment_method=event.payment_method,
        category=event.category,
        reference_type="expense",
        reference_id=str(expense_id),
        description=event.description or event.category,
        transaction_date=expense_date,
        operation=unit.operation,
    )
    expense = Expense.objects.create(
        id=expense_id,
        category=event.category,
        amount=event.amount,
        account=account,
        payment_method=event.payment_method,
        description=event.description,
        expense_date=expense_date,
        transaction=txn,
    )
    unit.touch("account", account.pk)

    logger.info(
        "Expense recorded",
        extra={
            "expense_id": str(expense.pk),
            "account_id": str(account.pk),
            "category": event.category,
            "amount": str(event.amount),
        },
    )
    return ExpenseResult(operation_id=str(unit.operation.pk), expense=expense, transaction=txn)


def _apply_transfer(unit, event: TransferEvent) -> TransferResult:
    rows = unit.lock(
        suppliers=[event.to_supplier_id],
        accounts=[event.from_account_id, event.to_account_id],
    )
    source = rows.accounts[event.from_account_id]

    destination = None
    supplier = None
    if event.is_supplier_payment:
        supplier = rows.suppliers[event.to_supplier_id]
    else:
        destination = rows.accounts[event.to_account_id]
        if destination.pk == source.pk:
            raise InvalidOperationError("Cannot transfer to the same account", account_id=source.pk)

    apply_balance_delta(source, -event.amount)
    if destination is not None:
        apply_balance_delta(destination, event.amount)
    else:
        apply_supplier_delta(supplier, -event.amount)

    if destination is not None:
        description = event.description or f"Transfer {source.name} -> {destination.name}"
    else:
        description = event.description or f"Payment to supplier {supplier.name}"

    txn = append_transaction(
        transaction_type=Transaction.TYPE_TRANSFER,
        amount=event.amount,
        from_account=source,
        to_account=destination,
        supplier=supplier,
        payment_method=source.account_type,
        reference_type="supplier" if supplier else "account",
        reference_id=str(supplier.pk if supplier else destination.pk),
        description=description,
        operation=unit.operation,
    )

    unit.touch("account", source.pk)
    if destination is not None:
        unit.touch("account", destination.pk)
    else:
        unit.touch("supplier", supplier.pk)

    logger.info(
        "Transfer applied",
        extra={
            "transaction_id": str(txn.pk),
            "from_account_id": str(source.pk),
            "to_account_id": str(destination.pk) if destination else None,
            "to_supplier_id": str(supplier.pk) if supplier else None,
            "amount": str(event.amount),
        },
    )
    return TransferResult(operation_id=str(unit.operation.pk), transaction=txn)


def record_expense(
    *,
    amount,
    category: str,
    payment_method: str | None = None,
    account_id=None,
    description: str = "",
    expense_date=None,
    idempotency_key: str | None = None,
) -> ExpenseResult:
    return run_ledger_operation(
        LedgerOperation.KIND_EXPENSE,
        lambda: ExpenseEvent.build(
            amount=amount,
            category=category,
            payment_method=payment_method,
            account_id=account_id,
            description=description,
            expense_date=expense_date,
            idempotency_key=idempotency_key,
        ),
        _apply_expense,
    )


def record_transfer(
    *,
    from_account_id,
    amount,
    to_account_id=None,
    to_supplier_id=None,
    description: str = "",
    idempotency_key: str | None = None,
) -> TransferResult:
    return run_ledger_operation(
        LedgerOperation.KIND_TRANSFER,
        lambda: TransferEvent.build(
            from_account_id=from_account_id,
            amount=amount,
            to_account_id=to_account_id,
            to_supplier_id=to_supplier_id,
            description=description,
            idempotency_key=idempotency_key,
        ),
        _apply_transfer,
    )
