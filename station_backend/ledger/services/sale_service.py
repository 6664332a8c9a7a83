# ledger/services/sale_service.py

"""
SALES (STOCK OUT + RECEIPT)

Counter sale:
- lock product + receiving account
- costing: reject (never clamp) an oversell; cost snapshot = current avg
- product position CAS -> `sale` movement (negative quantity)
- cash / bank: account credited + `sale_receipt` transaction
- card: no account is touched; a CardPayment is held until settlement
- Sale row with COGS snapshot and gross profit
- the receipt transaction carries the sale's business date

Nozzle reading sale:
- nozzle locked FIRST (it names the product), then product + account
- quantity = closing reading - nozzle's current reading
- nozzle reading advanced in the same unit as the stock deduction
- the admin-PIN gate is enforced by the caller (API layer), not here
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from django.utils import timezone

from accounting.models import CardPayment, Transaction
from accounting.services.account_store import (
    append_transaction,
    apply_balance_delta,
    resolve_account_id,
)
from accounting.services.card_store import get_card_type, hold_card_payment
from ledger.events import PAYMENT_CARD, NozzleSaleEvent, SaleEvent
from ledger.models import LedgerOperation
from ledger.services.coordinator import run_ledger_operation
from ledger.services.costing import ZERO, apply_sale, money
from ledger.services.costing import quantity as to_quantity
from ledger.services.exceptions import InvalidOperationError, InvalidQuantityError
from products.models import StockMovement
from products.services.product_ledger import (
    advance_nozzle,
    append_movement,
    get_nozzle,
    position_of,
    write_position,
)
from sales.models import Sale

logger = logging.getLogger("ledger")


@dataclass(frozen=True)
class SaleResult:
    operation_id: str
    sale: Sale
    movement: StockMovement
    transaction: Transaction | None
    card_payment: CardPayment | None = None


def _sell(
    unit,
    *,
    product,
    account,
    quantity: Decimal,
    selling_price: Decimal,
    payment_method: str,
    notes: str = "",
    nozzle=None,
    opening_reading: Decimal | None = None,
    closing_reading: Decimal | None = None,
    sale_date=None,
    card_type=None,
) -> SaleResult:
    outcome = apply_sale(position_of(product), quantity, selling_price)

    write_position(
        product,
        quantity=outcome.new_quantity,
        avg_cost=product.weighted_avg_cost,
    )

    sale_id = uuid.uuid4()
    business_date = sale_date or timezone.localdate()
    sale_amount = money(quantity * selling_price)
    total_cogs = money(quantity * outcome.cogs_per_unit)

    movement = append_movement(
        product,
        movement_type=StockMovement.MovementType.SALE,
        quantity=-quantity,
        unit_price=outcome.cogs_per_unit,
        operation=unit.operation,
        reference_type="sale",
        reference_id=sale_id,
        notes=notes,
    )

    txn = None
    if account is not None and sale_amount > ZERO:
        apply_balance_delta(account, sale_amount)
        txn = append_transaction(
            transaction_type=Transaction.TYPE_SALE_RECEIPT,
            amount=sale_amount,
            to_account=account,
            payment_method=payment_method,
            reference_type="sale",
            reference_id=str(sale_id),
            description=f"Sale of {quantity} {product.unit} {product.name}",
            transaction_date=business_date,
            operation=unit.operation,
        )

    sale = Sale.objects.create(
        id=sale_id,
        product=product,
        nozzle=nozzle,
        opening_reading=opening_reading,
        closing_reading=closing_reading,
        quantity=quantity,
        selling_price=selling_price,
        sale_amount=sale_amount,
        cogs_per_unit=outcome.cogs_per_unit,
        total_cogs=total_cogs,
        gross_profit=sale_amount - total_cogs,
        payment_method=payment_method,
        account=account,
        movement=movement,
        transaction=txn,
        operation=unit.operation,
        notes=notes,
        sale_date=business_date,
    )

    card_payment = None
    if card_type is not None and sale_amount > ZERO:
        card_payment = hold_card_payment(sale=sale, card_type=card_type, operation=unit.operation)
        unit.touch("card_payment", card_payment.pk)

    unit.touch("product", product.pk)
    if account is not None:
        unit.touch("account", account.pk)

    logger.info(
        "Sale applied",
        extra={
            "sale_id": str(sale.pk),
            "product_id": str(product.pk),
            "nozzle_id": str(nozzle.pk) if nozzle else None,
            "quantity": str(quantity),
            "sale_amount": str(sale_amount),
            "cogs_per_unit": str(outcome.cogs_per_unit),
            "gross_profit": str(sale.gross_profit),
            "payment_method": payment_method,
        },
    )

    return SaleResult(
        operation_id=str(unit.operation.pk),
        sale=sale,
        movement=movement,
        transaction=txn,
        card_payment=card_payment,
    )


def _payment_target(event) -> tuple[str | None, object]:
    """(account id to lock, card type) for the event's payment method."""
    if event.payment_method == PAYMENT_CARD:
        return None, get_card_type(event.card_type_id)
    account_id = resolve_account_id(
        payment_method=event.payment_method,
        account_id=event.account_id,
    )
    return account_id, None


def _apply_sale(unit, event: SaleEvent) -> SaleResult:
    account_id, card_type = _payment_target(event)
    rows = unit.lock(products=[event.product_id], accounts=[account_id])

    return _sell(
        unit,
        product=rows.products[event.product_id],
        account=rows.accounts.get(account_id),
        quantity=event.quantity,
        selling_price=event.selling_price,
        payment_method=event.payment_method,
        notes=event.notes,
        card_type=card_type,
    )


def _apply_nozzle_sale(unit, event: NozzleSaleEvent) -> SaleResult:
    account_id, card_type = _payment_target(event)

    nozzle = unit.lock(nozzles=[event.nozzle_id]).nozzles[event.nozzle_id]
    product_id = str(nozzle.product_id)
    rows = unit.lock(products=[product_id], accounts=[account_id])
    product = rows.products[product_id]

    opening = nozzle.current_reading
    if event.closing_reading < opening:
        raise InvalidOperationError(
            "Closing reading cannot be lower than the current nozzle reading",
            nozzle_id=nozzle.pk,
            current_reading=opening,
            closing_reading=event.closing_reading,
        )
    quantity = event.closing_reading - opening
    if quantity <= ZERO:
        raise InvalidQuantityError(
            "Closing reading equals the current reading; nothing was dispensed",
            nozzle_id=nozzle.pk,
            closing_reading=event.closing_reading,
        )

    selling_price = event.selling_price
    if selling_price is None:
        selling_price = money(product.selling_price, field_name="selling_price")

    advance_nozzle(nozzle, closing_reading=event.closing_reading)
    unit.touch("nozzle", nozzle.pk)

    return _sell(
        unit,
        product=product,
        account=rows.accounts.get(account_id),
        quantity=quantity,
        selling_price=selling_price,
        payment_method=event.payment_method,
        notes=f"Nozzle {nozzle.nozzle_number} reading {opening} -> {event.closing_reading}",
        nozzle=nozzle,
        opening_reading=opening,
        closing_reading=event.closing_reading,
        sale_date=event.reading_date,
        card_type=card_type,
    )


def record_sale(
    *,
    product_id,
    quantity,
    selling_price,
    payment_method: str | None = None,
    account_id=None,
    card_type_id=None,
    notes: str = "",
    idempotency_key: str | None = None,
) -> SaleResult:
    return run_ledger_operation(
        LedgerOperation.KIND_SALE,
        lambda: SaleEvent.build(
            product_id=product_id,
            quantity=quantity,
            selling_price=selling_price,
            payment_method=payment_method,
            account_id=account_id,
            card_type_id=card_type_id,
            notes=notes,
            idempotency_key=idempotency_key,
        ),
        _apply_sale,
    )


def record_nozzle_sale(
    *,
    nozzle_id,
    closing_reading,
    payment_method: str | None = None,
    selling_price=None,
    account_id=None,
    card_type_id=None,
    reading_date=None,
    idempotency_key: str | None = None,
) -> SaleResult:
    """
    Sale derived from a dispenser meter reading.

    Callers MUST have passed the admin-PIN gate before calling this.
    """
    return run_ledger_operation(
        LedgerOperation.KIND_NOZZLE_SALE,
        lambda: NozzleSaleEvent.build(
            nozzle_id=nozzle_id,
            closing_reading=closing_reading,
            payment_method=payment_method,
            selling_price=selling_price,
            account_id=account_id,
            card_type_id=card_type_id,
            reading_date=reading_date,
            idempotency_key=idempotency_key,
        ),
        _apply_nozzle_sale,
    )


def preview_nozzle_sale(*, nozzle_id, closing_reading) -> dict:
    """Read-only quantity/amount preview for a reading (nothing is locked or written)."""
    nozzle = get_nozzle(nozzle_id)
    closing = to_quantity(closing_reading, field_name="closing_reading")
    quantity = closing - nozzle.current_reading
    price = nozzle.product.selling_price
    return {
        "nozzle_id": nozzle.pk,
        "opening_reading": nozzle.current_reading,
        "closing_reading": closing,
        "quantity": quantity,
        "selling_price": price,
        "sale_amount": money(quantity * price) if quantity > ZERO else Decimal("0.00"),
    }
