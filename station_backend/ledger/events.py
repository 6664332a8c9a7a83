# ledger/events.py

"""
LEDGER EVENTS (CLOSED VARIANTS)

One frozen dataclass per business event kind. Each `build()` normalizes the
raw caller payload (strings, ints, Decimals) into validated Decimals and
raises a LedgerValidationError before the coordinator touches any row.

`to_payload()` is the JSON-safe form stored on LedgerOperation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal

from ledger.services.costing import ZERO, money, positive_quantity, quantity
from ledger.services.exceptions import InvalidOperationError, InvalidQuantityError

PAYMENT_CASH = "cash"
PAYMENT_BANK = "bank"
PAYMENT_CARD = "card"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_BANK)
# Card is a sale-only method: the money is held by the card processor
# until settlement.
SALE_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_BANK, PAYMENT_CARD)


def _clean_key(value) -> str | None:
    key = str(value or "").strip()
    return key or None


def _clean_text(value) -> str:
    return str(value or "").strip()


def _require_id(value, *, field_name: str) -> str:
    v = _clean_text(value)
    if not v:
        raise InvalidOperationError(f"{field_name} is required", field=field_name)
    return v


def _optional_id(value) -> str | None:
    v = _clean_text(value)
    return v or None


def _payment_method(value, *, allow_card: bool = False) -> str:
    m = (_clean_text(value) or PAYMENT_CASH).lower()
    if m in ("bank_transfer", "transfer"):
        m = PAYMENT_BANK
    allowed = SALE_PAYMENT_METHODS if allow_card else PAYMENT_METHODS
    if m not in allowed:
        raise InvalidOperationError(
            f"Invalid payment_method. Use {', '.join(repr(a) for a in allowed)}.",
            payment_method=value,
        )
    return m


def _sale_payment(payment_method, account_id, card_type_id) -> tuple[str, str | None, str | None]:
    """(payment_method, account_id, card_type_id) for a sale; card sales name a card type, never an account."""
    method = _payment_method(payment_method, allow_card=True)
    account = _optional_id(account_id)
    card_type = _optional_id(card_type_id)

    if method == PAYMENT_CARD:
        if not card_type:
            raise InvalidOperationError("card_type_id is required for card sales", field="card_type_id")
        if account:
            raise InvalidOperationError(
                "Card sales are held until settlement; account_id is not accepted",
                account_id=account,
            )
    elif card_type:
        raise InvalidOperationError(
            "card_type_id is only valid for card sales", payment_method=method
        )
    return method, account, card_type


def _optional_date(value, *, field_name: str) -> date | None:
    if value is not None and not isinstance(value, date):
        raise InvalidOperationError(f"{field_name} must be a date", field=field_name)
    return value


def _non_negative_money(value, *, field_name: str) -> Decimal:
    amt = money(value if value not in (None, "") else "0", field_name=field_name)
    if amt < ZERO:
        raise InvalidQuantityError(f"{field_name} cannot be negative", field=field_name, value=value)
    return amt


def _required_price(value) -> Decimal:
    price = money(value, field_name="selling_price")
    if price < ZERO:
        raise InvalidQuantityError("selling_price cannot be negative", value=value)
    return price


def _positive_money(value, *, field_name: str) -> Decimal:
    amt = money(value, field_name=field_name)
    if amt <= ZERO:
        raise InvalidQuantityError(f"{field_name} must be > 0", field=field_name, value=value)
    return amt


class LedgerEvent:
    kind = ""

    def to_payload(self) -> dict:
        def _jsonable(v):
            if isinstance(v, Decimal):
                return str(v)
            if isinstance(v, date):
                return v.isoformat()
            if isinstance(v, (list, tuple)):
                return [_jsonable(i) for i in v]
            if isinstance(v, dict):
                return {k: _jsonable(i) for k, i in v.items()}
            return v

        return {"kind": self.kind, **_jsonable(asdict(self))}


# ============================================================
# STOCK + MONEY EVENTS
# ============================================================


@dataclass(frozen=True)
class PurchaseLine:
    product_id: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return money(self.quantity * self.unit_price)


@dataclass(frozen=True)
class PurchaseEvent(LedgerEvent):
    supplier_id: str
    lines: tuple[PurchaseLine, ...]
    paid_amount: Decimal
    payment_method: str
    account_id: str | None = None
    invoice_number: str = ""
    notes: str = ""
    idempotency_key: str | None = None

    kind = "purchase"

    @property
    def total_amount(self) -> Decimal:
        return money(sum((line.line_total for line in self.lines), ZERO))

    @property
    def due_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @classmethod
    def build(
        cls,
        *,
        supplier_id,
        lines,
        paid_amount=None,
        payment_method=None,
        account_id=None,
        invoice_number="",
        notes="",
        idempotency_key=None,
    ) -> "PurchaseEvent":
        if not lines:
            raise InvalidOperationError("Purchase must contain at least one line")

        normalized = []
        seen = set()
        for idx, line in enumerate(lines):
            if not isinstance(line, dict):
                raise InvalidOperationError(f"Purchase line {idx} must be an object")

            product_id = _require_id(line.get("product_id"), field_name="product_id")
            if product_id in seen:
                raise InvalidOperationError(
                    "A product may appear only once per purchase", product_id=product_id
                )
            seen.add(product_id)

            unit_price = money(line.get("unit_price"), field_name="unit_price")
            if unit_price < ZERO:
                raise InvalidQuantityError("unit_price cannot be negative", product_id=product_id)

            normalized.append(
                PurchaseLine(
                    product_id=product_id,
                    quantity=positive_quantity(line.get("quantity")),
                    unit_price=unit_price,
                )
            )

        event = cls(
            supplier_id=_require_id(supplier_id, field_name="supplier_id"),
            lines=tuple(normalized),
            paid_amount=_non_negative_money(paid_amount, field_name="paid_amount"),
            payment_method=_payment_method(payment_method),
            account_id=_optional_id(account_id),
            invoice_number=_clean_text(invoice_number),
            notes=_clean_text(notes),
            idempotency_key=_clean_key(idempotency_key),
        )

        if event.paid_amount > event.total_amount:
            raise InvalidQuantityError(
                "paid_amount cannot exceed the purchase total",
                paid_amount=event.paid_amount,
                total_amount=event.total_amount,
            )
        return event


@dataclass(frozen=True)
class SaleEvent(LedgerEvent):
    product_id: str
    quantity: Decimal
    selling_price: Decimal
    payment_method: str
    account_id: str | None = None
    card_type_id: str | None = None
    notes: str = ""
    idempotency_key: str | None = None

    kind = "sale"

    @property
    def sale_amount(self) -> Decimal:
        return money(self.quantity * self.selling_price)

    @classmethod
    def build(
        cls,
        *,
        product_id,
        quantity,
        selling_price,
        payment_method=None,
        account_id=None,
        card_type_id=None,
        notes="",
        idempotency_key=None,
    ) -> "SaleEvent":
        method, account, card_type = _sale_payment(payment_method, account_id, card_type_id)
        return cls(
            product_id=_require_id(product_id, field_name="product_id"),
            quantity=positive_quantity(quantity),
            selling_price=_required_price(selling_price),
            payment_method=method,
            account_id=account,
            card_type_id=card_type,
            notes=_clean_text(notes),
            idempotency_key=_clean_key(idempotency_key),
        )


@dataclass(frozen=True)
class NozzleSaleEvent(LedgerEvent):
    nozzle_id: str
    closing_reading: Decimal
    payment_method: str
    selling_price: Decimal | None = None
    account_id: str | None = None
    card_type_id: str | None = None
    reading_date: date | None = None
    idempotency_key: str | None = None

    kind = "nozzle_sale"

    @classmethod
    def build(
        cls,
        *,
        nozzle_id,
        closing_reading,
        payment_method=None,
        selling_price=None,
        account_id=None,
        card_type_id=None,
        reading_date=None,
        idempotency_key=None,
    ) -> "NozzleSaleEvent":
        closing = quantity(closing_reading, field_name="closing_reading")
        if closing < ZERO:
            raise InvalidQuantityError("closing_reading cannot be negative", closing_reading=closing)

        price = None
        if selling_price not in (None, ""):
            price = _non_negative_money(selling_price, field_name="selling_price")

        method, account, card_type = _sale_payment(payment_method, account_id, card_type_id)

        return cls(
            nozzle_id=_require_id(nozzle_id, field_name="nozzle_id"),
            closing_reading=closing,
            payment_method=method,
            selling_price=price,
            account_id=account,
            card_type_id=card_type,
            reading_date=_optional_date(reading_date, field_name="reading_date"),
            idempotency_key=_clean_key(idempotency_key),
        )


@dataclass(frozen=True)
class AdjustmentEvent(LedgerEvent):
    product_id: str
    quantity_delta: Decimal
    reason: str
    idempotency_key: str | None = None

    kind = "adjustment"

    @classmethod
    def build(cls, *, product_id, quantity_delta, reason, idempotency_key=None) -> "AdjustmentEvent":
        delta = quantity(quantity_delta, field_name="quantity_delta")
        if delta == ZERO:
            raise InvalidQuantityError("quantity_delta cannot be 0", quantity_delta=quantity_delta)

        reason = _clean_text(reason)
        if not reason:
            raise InvalidOperationError("reason is required for stock adjustments")

        return cls(
            product_id=_require_id(product_id, field_name="product_id"),
            quantity_delta=delta,
            reason=reason,
            idempotency_key=_clean_key(idempotency_key),
        )


@dataclass(frozen=True)
class InitialStockEvent(LedgerEvent):
    product_id: str
    quantity: Decimal
    unit_cost: Decimal
    idempotency_key: str | None = None

    kind = "initial_stock"

    @classmethod
    def build(cls, *, product_id, quantity, unit_cost, idempotency_key=None) -> "InitialStockEvent":
        return cls(
            product_id=_require_id(product_id, field_name="product_id"),
            quantity=positive_quantity(quantity),
            unit_cost=_non_negative_money(unit_cost, field_name="unit_cost"),
            idempotency_key=_clean_key(idempotency_key),
        )


# ============================================================
# MONEY-ONLY EVENTS
# ============================================================


@dataclass(frozen=True)
class ExpenseEvent(LedgerEvent):
    amount: Decimal
    category: str
    payment_method: str
    account_id: str | None = None
    description: str = ""
    expense_date: date | None = None
    idempotency_key: str | None = None

    kind = "expense"

    @classmethod
    def build(
        cls,
        *,
        amount,
        category,
        payment_method=None,
        account_id=None,
        description="",
        expense_date=None,
        idempotency_key=None,
    ) -> "ExpenseEvent":
        category = _clean_text(category)
        if not category:
            raise InvalidOperationError("category is required for expenses")

        return cls(
            amount=_positive_money(amount, field_name="amount"),
            category=category,
            payment_method=_payment_method(payment_method),
            account_id=_optional_id(account_id),
            description=_clean_text(description),
            expense_date=_optional_date(expense_date, field_name="expense_date"),
            idempotency_key=_clean_key(idempotency_key),
        )


@dataclass(frozen=True)
class TransferEvent(LedgerEvent):
    from_account_id: str
    amount: Decimal
    to_account_id: str | None = None
    to_supplier_id: str | None = None
    description: str = ""
    idempotency_key: str | None = None

    kind = "transfer"

    @property
    def is_supplier_payment(self) -> bool:
        return self.to_supplier_id is not None

    @classmethod
    def build(
        cls,
        *,
        from_account_id,
        amount,
        to_account_id=None,
        to_supplier_id=None,
        description="",
        idempotency_key=None,
    ) -> "TransferEvent":
        source = _require_id(from_account_id, field_name="from_account_id")
        to_account = _optional_id(to_account_id)
        to_supplier = _optional_id(to_supplier_id)

        if bool(to_account) == bool(to_supplier):
            raise InvalidOperationError(
                "Transfer needs exactly one destination: to_account_id or to_supplier_id"
            )
        if to_account and to_account == source:
            raise InvalidOperationError("Cannot transfer to the same account", account_id=source)

        return cls(
            from_account_id=source,
            amount=_positive_money(amount, field_name="amount"),
            to_account_id=to_account,
            to_supplier_id=to_supplier,
            description=_clean_text(description),
            idempotency_key=_clean_key(idempotency_key),
        )


# ============================================================
# CARD SETTLEMENT + CASH DRAWER DAY
# ============================================================


@dataclass(frozen=True)
class CardSettlementEvent(LedgerEvent):
    card_payment_id: str
    account_id: str | None = None
    settlement_date: date | None = None
    notes: str = ""
    idempotency_key: str | None = None

    kind = "card_settlement"

    @classmethod
    def build(
        cls,
        *,
        card_payment_id,
        account_id=None,
        settlement_date=None,
        notes="",
        idempotency_key=None,
    ) -> "CardSettlementEvent":
        return cls(
            card_payment_id=_require_id(card_payment_id, field_name="card_payment_id"),
            account_id=_optional_id(account_id),
            settlement_date=_optional_date(settlement_date, field_name="settlement_date"),
            notes=_clean_text(notes),
            idempotency_key=_clean_key(idempotency_key),
        )


@dataclass(frozen=True)
class DayOpenEvent(LedgerEvent):
    operation_date: date | None
    counted_cash: Decimal
    note: str = ""
    idempotency_key: str | None = None

    kind = "day_open"

    @classmethod
    def build(cls, *, counted_cash, operation_date=None, note="", idempotency_key=None) -> "DayOpenEvent":
        return cls(
            operation_date=_optional_date(operation_date, field_name="operation_date"),
            counted_cash=_non_negative_money(counted_cash, field_name="counted_cash"),
            note=_clean_text(note),
            idempotency_key=_clean_key(idempotency_key),
        )


@dataclass(frozen=True)
class DayCloseEvent(DayOpenEvent):
    kind = "day_close"


EVENT_TYPES = {
    cls.kind: cls
    for cls in (
        PurchaseEvent,
        SaleEvent,
        NozzleSaleEvent,
        AdjustmentEvent,
        InitialStockEvent,
        ExpenseEvent,
        TransferEvent,
        CardSettlementEvent,
        DayOpenEvent,
        DayCloseEvent,
    )
}

__all__ = [
    "EVENT_TYPES",
    "PAYMENT_BANK",
    "PAYMENT_CARD",
    "PAYMENT_CASH",
    "PAYMENT_METHODS",
    "SALE_PAYMENT_METHODS",
    "AdjustmentEvent",
    "CardSettlementEvent",
    "DayCloseEvent",
    "DayOpenEvent",
    "ExpenseEvent",
    "InitialStockEvent",
    "LedgerEvent",
    "NozzleSaleEvent",
    "PurchaseEvent",
    "PurchaseLine",
    "SaleEvent",
    "TransferEvent",
]
