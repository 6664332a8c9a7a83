# accounting/services/account_store.py

"""
ACCOUNT STORE

Reads, locks and versioned writes for cash/bank accounts, plus the
append-only Transaction log.

Only the ledger coordinator calls the mutating helpers
(`lock_accounts`, `apply_balance_delta`, `append_transaction`), always
inside its atomic unit.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db.models import Sum

from accounting.models import Account, Transaction
from ledger.services.costing import money
from ledger.services.exceptions import AccountNotFoundError, InsufficientFundsError
from ledger.services.locking import lock_rows, versioned_write

logger = logging.getLogger("ledger")

_LOOKUP_ERRORS = (ValueError, TypeError, ValidationError)


def negative_balances_allowed() -> bool:
    return bool(getattr(settings, "LEDGER_ALLOW_NEGATIVE_BALANCES", False))


def get_account(account_id) -> Account:
    try:
        return Account.objects.get(pk=account_id)
    except (Account.DoesNotExist, *_LOOKUP_ERRORS) as exc:
        raise AccountNotFoundError("Account not found", account_id=account_id) from exc


def resolve_account_id(*, payment_method: str, account_id=None) -> str:
    """
    Which account receives / pays for this payment method?

    An explicit account wins (must be active). Otherwise the first active
    account whose type matches the payment method.
    """
    if account_id:
        account = get_account(account_id)
        if not account.is_active:
            raise AccountNotFoundError("Account is inactive", account_id=account_id)
        return str(account.pk)

    account_type = Account.TYPE_BANK if payment_method == "bank" else Account.TYPE_CASH
    pk = (
        Account.objects.filter(account_type=account_type, status=Account.STATUS_ACTIVE)
        .order_by("pk")
        .values_list("pk", flat=True)
        .first()
    )
    if pk is None:
        logger.error(
            "Account resolution failed: no active account for payment method",
            extra={"payment_method": payment_method},
        )
        raise AccountNotFoundError(
            f"No active {account_type} account configured",
            payment_method=payment_method,
        )
    return str(pk)


def lock_accounts(account_ids) -> dict[str, Account]:
    locked = lock_rows(
        Account, account_ids, not_found=AccountNotFoundError, id_field="account_id"
    )
    for account_id, account in locked.items():
        if not account.is_active:
            raise AccountNotFoundError("Account is inactive", account_id=account_id)
    return locked


def apply_balance_delta(account: Account, delta: Decimal) -> Account:
    """
    Move an account's cached balance by a signed delta.

    Debits (delta < 0) are rejected when they would overdraw the account,
    unless LEDGER_ALLOW_NEGATIVE_BALANCES is enabled.
    """
    delta = money(delta)
    new_balance = money(account.current_balance) + delta

    if delta < 0 and new_balance < 0 and not negative_balances_allowed():
        raise InsufficientFundsError(
            f"Insufficient funds in {account.name}. Requested: {-delta}, Available: {account.current_balance}",
            account_id=account.pk,
            requested=-delta,
            available=account.current_balance,
        )

    return versioned_write(account, current_balance=new_balance)


def append_transaction(**fields) -> Transaction:
    return Transaction.objects.create(**fields)


def derived_balance(account: Account) -> Decimal:
    """opening_balance + signed sum of every Transaction touching the account."""
    incoming = (
        Transaction.objects.filter(to_account=account).aggregate(s=Sum("amount"))["s"]
        or Decimal("0.00")
    )
    outgoing = (
        Transaction.objects.filter(from_account=account).aggregate(s=Sum("amount"))["s"]
        or Decimal("0.00")
    )
    return money(Decimal(account.opening_balance) + incoming - outgoing)
