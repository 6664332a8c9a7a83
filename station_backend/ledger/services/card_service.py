# ledger/services/card_service.py

"""
CARD SETTLEMENT (HOLD -> RECEIVED)

The processor pays a held card sale into a bank account, keeping its tax:

- card payment locked (must still be on hold), then the bank account
- bank credited with the NET amount + `card_settlement` transaction
- the withheld tax becomes an Expense ("Card Tax") with no paying account,
  so profit reports see it while no account moves twice
- card payment CAS -> received (account, date, transaction, tax expense)

All of it lands in one unit; a settlement is never half-applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.utils import timezone

from accounting.models import Account, CardPayment, Expense, Transaction
from accounting.services.account_store import (
    append_transaction,
    apply_balance_delta,
    resolve_account_id,
)
from accounting.services.card_store import mark_received
from ledger.events import PAYMENT_BANK, PAYMENT_CARD, CardSettlementEvent
from ledger.models import LedgerOperation
from ledger.services.coordinator import run_ledger_operation
from ledger.services.costing import ZERO
from ledger.services.exceptions import InvalidOperationError

logger = logging.getLogger("ledger")

CARD_TAX_CATEGORY = "Card Tax"


@dataclass(frozen=True)
class CardSettlementResult:
    operation_id: str
    card_payment: CardPayment
    transaction: Transaction | None
    tax_expense: Expense | None


def _apply_card_settlement(unit, event: CardSettlementEvent) -> CardSettlementResult:
    payment = unit.lock(card_payments=[event.card_payment_id]).card_payments[event.card_payment_id]
    if not payment.is_on_hold:
        raise InvalidOperationError(
            "Card payment was already received",
            card_payment_id=payment.pk,
            status=payment.status,
        )

    account_id = resolve_account_id(payment_method=PAYMENT_BANK, account_id=event.account_id)
    account = unit.lock(accounts=[account_id]).accounts[account_id]
    if account.account_type != Account.TYPE_BANK:
        raise InvalidOperationError(
            "Card payments settle into a bank account",
            account_id=account.pk,
            account_type=account.account_type,
        )

    received_date = event.settlement_date or timezone.localdate()
    card_name = payment.card_type.card_name

    txn = None
    if payment.net_amount > ZERO:
        apply_balance_delta(account, payment.net_amount)
        txn = append_transaction(
            transaction_type=Transaction.TYPE_CARD_SETTLEMENT,
            amount=payment.net_amount,
            to_account=account,
            payment_method=PAYMENT_CARD,
            reference_type="card_payment",
            reference_id=str(payment.pk),
            description=event.notes or f"{card_name} settlement (gross {payment.amount}, tax {payment.tax_amount})",
            transaction_date=received_date,
            operation=unit.operation,
        )
        unit.touch("account", account.pk)

    tax_expense = None
    if payment.tax_amount > ZERO:
        tax_expense = Expense.objects.create(
            category=CARD_TAX_CATEGORY,
            amount=payment.tax_amount,
            account=None,
            payment_method=PAYMENT_CARD,
            description=f"{card_name} tax {payment.tax_percentage}% on {payment.amount}",
            expense_date=received_date,
            transaction=None,
        )

    mark_received(
        payment,
        account=account,
        received_date=received_date,
        settlement_transaction=txn,
        tax_expense=tax_expense,
        notes=event.notes,
    )
    unit.touch("card_payment", payment.pk)

    logger.info(
        "Card payment settled",
        extra={
            "card_payment_id": str(payment.pk),
            "account_id": str(account.pk),
            "gross": str(payment.amount),
            "tax": str(payment.tax_amount),
            "net": str(payment.net_amount),
        },
    )
    return CardSettlementResult(
        operation_id=str(unit.operation.pk),
        card_payment=payment,
        transaction=txn,
        tax_expense=tax_expense,
    )


def record_card_settlement(
    *,
    card_payment_id,
    account_id=None,
    settlement_date=None,
    notes: str = "",
    idempotency_key: str | None = None,
) -> CardSettlementResult:
    """Mark a held card payment as received into a bank account (default: first active bank)."""
    return run_ledger_operation(
        LedgerOperation.KIND_CARD_SETTLEMENT,
        lambda: CardSettlementEvent.build(
            card_payment_id=card_payment_id,
            account_id=account_id,
            settlement_date=settlement_date,
            notes=notes,
            idempotency_key=idempotency_key,
        ),
        _apply_card_settlement,
    )
