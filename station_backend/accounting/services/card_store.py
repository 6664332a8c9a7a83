# accounting/services/card_store.py

"""
CARD PAYMENT STORE

Card types, held card payments and their settlement write.

- `hold_card_payment` runs inside the sale's unit
- `lock_card_payments` / `mark_received` run inside the card-settlement unit
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError

from accounting.models import CardPayment, CardType
from ledger.services.costing import money
from ledger.services.exceptions import CardPaymentNotFoundError, CardTypeNotFoundError
from ledger.services.locking import lock_rows, versioned_write

logger = logging.getLogger("ledger")

_LOOKUP_ERRORS = (ValueError, TypeError, ValidationError)


def get_card_type(card_type_id) -> CardType:
    try:
        card_type = CardType.objects.get(pk=card_type_id)
    except (CardType.DoesNotExist, *_LOOKUP_ERRORS) as exc:
        raise CardTypeNotFoundError("Card type not found", card_type_id=card_type_id) from exc
    if not card_type.is_active:
        raise CardTypeNotFoundError("Card type is inactive", card_type_id=card_type_id)
    return card_type


def card_tax(amount: Decimal, tax_percentage: Decimal) -> Decimal:
    return money(Decimal(amount) * Decimal(tax_percentage) / Decimal("100"))


def hold_card_payment(*, sale, card_type: CardType, operation=None) -> CardPayment:
    tax = card_tax(sale.sale_amount, card_type.tax_percentage)
    return CardPayment.objects.create(
        card_type=card_type,
        sale=sale,
        amount=sale.sale_amount,
        tax_percentage=card_type.tax_percentage,
        tax_amount=tax,
        net_amount=sale.sale_amount - tax,
        payment_date=sale.sale_date,
        operation=operation,
    )


def lock_card_payments(card_payment_ids) -> dict[str, CardPayment]:
    return lock_rows(
        CardPayment,
        card_payment_ids,
        not_found=CardPaymentNotFoundError,
        id_field="card_payment_id",
    )


def mark_received(payment: CardPayment, **values) -> CardPayment:
    return versioned_write(payment, status=CardPayment.STATUS_RECEIVED, **values)
