# ledger/services/costing.py

"""
COSTING ENGINE (PURE)

Weighted-average costing for a single product position.

Rules:
- No ORM, no I/O, no side effects: input position in, outcome out.
- Decimal only. Quantities are litres/units at 3 places; money and unit
  cost at 2 places, ROUND_HALF_UP.
- Purchases re-weight the average cost. Sales and adjustments never do.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ledger.services.exceptions import InsufficientStockError, InvalidQuantityError

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.001")
ZERO = Decimal("0")


def to_decimal(value, *, field_name: str = "value") -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidQuantityError(f"{field_name} must be a number", field=field_name, value=value)

    if isinstance(value, float):
        # floats are routed through str() so 0.1 stays 0.1
        value = str(value)

    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidQuantityError(
            f"{field_name} must be a number", field=field_name, value=value
        ) from exc

    if not dec.is_finite():
        raise InvalidQuantityError(f"{field_name} must be finite", field=field_name, value=value)

    return dec


def _quantize(value, places: Decimal, field_name: str) -> Decimal:
    dec = to_decimal(value, field_name=field_name)
    try:
        return dec.quantize(places, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidQuantityError(
            f"{field_name} is out of range", field=field_name, value=value
        ) from exc


def money(value, *, field_name: str = "amount") -> Decimal:
    return _quantize(value, TWOPLACES, field_name)


def quantity(value, *, field_name: str = "quantity") -> Decimal:
    return _quantize(value, QTY_PLACES, field_name)


def positive_quantity(value, *, field_name: str = "quantity") -> Decimal:
    qty = quantity(value, field_name=field_name)
    if qty <= ZERO:
        raise InvalidQuantityError(
            f"{field_name} must be greater than zero", field=field_name, value=value
        )
    return qty


def stock_value(qty: Decimal, avg_cost: Decimal) -> Decimal:
    return (qty * avg_cost).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class StockPosition:
    quantity: Decimal
    avg_cost: Decimal

    @classmethod
    def of(cls, product) -> "StockPosition":
        return cls(
            quantity=Decimal(str(product.current_stock or 0)),
            avg_cost=Decimal(str(product.weighted_avg_cost or 0)),
        )


@dataclass(frozen=True)
class PurchaseOutcome:
    new_quantity: Decimal
    new_avg_cost: Decimal


@dataclass(frozen=True)
class SaleOutcome:
    new_quantity: Decimal
    cogs_per_unit: Decimal
    gross_profit_per_unit: Decimal | None


def apply_purchase(position: StockPosition, qty, unit_price) -> PurchaseOutcome:
    q = positive_quantity(qty)
    p = money(unit_price, field_name="unit_price")
    if p < ZERO:
        raise InvalidQuantityError("unit_price cannot be negative", unit_price=p)

    new_qty = position.quantity + q
    if new_qty <= ZERO:
        return PurchaseOutcome(new_quantity=new_qty, new_avg_cost=p)

    blended = (position.quantity * position.avg_cost + q * p) / new_qty
    return PurchaseOutcome(
        new_quantity=new_qty,
        new_avg_cost=blended.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
    )


def apply_sale(position: StockPosition, qty, selling_price=None) -> SaleOutcome:
    """
    Deduct a sale from the position.

    cogs_per_unit is the current average cost (snapshot). Oversells are
    rejected, never clamped.
    """
    q = positive_quantity(qty)

    if q > position.quantity:
        raise InsufficientStockError(
            f"Insufficient stock. Requested: {q}, Available: {position.quantity}",
            requested=q,
            available=position.quantity,
        )

    cogs = position.avg_cost.quantize(TWOPLACES, rounding=ROUND_HALF_UP)

    margin = None
    if selling_price is not None:
        margin = money(selling_price, field_name="selling_price") - cogs

    return SaleOutcome(
        new_quantity=position.quantity - q,
        cogs_per_unit=cogs,
        gross_profit_per_unit=margin,
    )


def apply_adjustment(position: StockPosition, signed_qty) -> Decimal:
    delta = quantity(signed_qty, field_name="quantity_delta")
    if delta == ZERO:
        raise InvalidQuantityError("quantity_delta cannot be 0", quantity_delta=signed_qty)

    new_qty = position.quantity + delta
    if new_qty < ZERO:
        raise InsufficientStockError(
            f"Cannot reduce stock below zero. Remaining: {position.quantity}, Requested OUT: {abs(delta)}",
            requested=abs(delta),
            available=position.quantity,
        )
    return new_qty
