# ledger/services/stock_service.py

"""
STOCK-ONLY OPERATIONS

Adjustment:
- quantity_delta is signed and never 0; a reason is mandatory
- cannot reduce stock below zero
- weighted-average cost is left unchanged (stock_value follows the new qty)

Initial stock:
- only for a product with no movement history
- sets quantity and average cost directly (`initial` movement)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ledger.events import AdjustmentEvent, InitialStockEvent
from ledger.models import LedgerOperation
from ledger.services.coordinator import run_ledger_operation
from ledger.services.costing import apply_adjustment
from ledger.services.exceptions import InvalidOperationError
from products.models import StockMovement
from products.services.product_ledger import (
    append_movement,
    has_history,
    position_of,
    write_position,
)

logger = logging.getLogger("ledger")


@dataclass(frozen=True)
class StockResult:
    operation_id: str
    movement: StockMovement


def _apply_adjustment(unit, event: AdjustmentEvent) -> StockResult:
    product = unit.lock(products=[event.product_id]).products[event.product_id]

    new_qty = apply_adjustment(position_of(product), event.quantity_delta)
    write_position(product, quantity=new_qty, avg_cost=product.weighted_avg_cost)

    movement = append_movement(
        product,
        movement_type=StockMovement.MovementType.ADJUSTMENT,
        quantity=event.quantity_delta,
        unit_price=product.weighted_avg_cost,
        operation=unit.operation,
        reference_type="adjustment",
        notes=event.reason,
    )
    unit.touch("product", product.pk)

    logger.info(
        "Stock adjustment applied",
        extra={
            "product_id": str(product.pk),
            "quantity_delta": str(event.quantity_delta),
            "balance_after": str(new_qty),
            "reason": event.reason,
        },
    )
    return StockResult(operation_id=str(unit.operation.pk), movement=movement)


def _apply_initial_stock(unit, event: InitialStockEvent) -> StockResult:
    product = unit.lock(products=[event.product_id]).products[event.product_id]

    if has_history(product):
        raise InvalidOperationError(
            "Initial stock can only be set on a product with no stock history",
            product_id=product.pk,
        )

    write_position(product, quantity=event.quantity, avg_cost=event.unit_cost)

    movement = append_movement(
        product,
        movement_type=StockMovement.MovementType.INITIAL,
        quantity=event.quantity,
        unit_price=event.unit_cost,
        operation=unit.operation,
        reference_type="initial_stock",
        notes="Opening stock",
    )
    unit.touch("product", product.pk)

    logger.info(
        "Initial stock recorded",
        extra={
            "product_id": str(product.pk),
            "quantity": str(event.quantity),
            "unit_cost": str(event.unit_cost),
        },
    )
    return StockResult(operation_id=str(unit.operation.pk), movement=movement)


def record_adjustment(
    *,
    product_id,
    quantity_delta,
    reason: str,
    idempotency_key: str | None = None,
) -> StockResult:
    return run_ledger_operation(
        LedgerOperation.KIND_ADJUSTMENT,
        lambda: AdjustmentEvent.build(
            product_id=product_id,
            quantity_delta=quantity_delta,
            reason=reason,
            idempotency_key=idempotency_key,
        ),
        _apply_adjustment,
    )


def record_initial_stock(
    *,
    product_id,
    quantity,
    unit_cost,
    idempotency_key: str | None = None,
) -> StockResult:
    return run_ledger_operation(
        LedgerOperation.KIND_INITIAL_STOCK,
        lambda: InitialStockEvent.build(
            product_id=product_id,
            quantity=quantity,
            unit_cost=unit_cost,
            idempotency_key=idempotency_key,
        ),
        _apply_initial_stock,
    )
