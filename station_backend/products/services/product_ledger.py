# products/services/product_ledger.py

"""
PRODUCT LEDGER (STORE)

Reads, locks and versioned writes for products and nozzles, plus the
append-only StockMovement log.

Rules:
- Product position (current_stock, weighted_avg_cost, stock_value) is
  written ONLY through `write_position` (versioned CAS)
- stock_value is always recomputed as current_stock x weighted_avg_cost
- Movements are appended in the same unit as the position write
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import F, Sum

from ledger.services.costing import QTY_PLACES, StockPosition, stock_value
from ledger.services.exceptions import NozzleNotFoundError, ProductNotFoundError
from ledger.services.locking import lock_rows, versioned_write
from products.models import Nozzle, Product, StockMovement

_LOOKUP_ERRORS = (ValueError, TypeError, ValidationError)


# ------------------------------------------------------------
# Products
# ------------------------------------------------------------


def lock_products(product_ids) -> dict[str, Product]:
    return lock_rows(
        Product, product_ids, not_found=ProductNotFoundError, id_field="product_id"
    )


def low_stock_queryset():
    """Active products at or below their minimum stock level, by name."""
    return Product.objects.filter(
        is_active=True,
        current_stock__lte=F("minimum_stock_level"),
    ).order_by("name")


def position_of(product: Product) -> StockPosition:
    return StockPosition.of(product)


def write_position(product: Product, *, quantity: Decimal, avg_cost: Decimal) -> Product:
    return versioned_write(
        product,
        current_stock=quantity,
        weighted_avg_cost=avg_cost,
        stock_value=stock_value(quantity, avg_cost),
    )


def append_movement(
    product: Product,
    *,
    movement_type: str,
    quantity: Decimal,
    unit_price: Decimal,
    operation=None,
    reference_type: str = "",
    reference_id: str = "",
    notes: str = "",
) -> StockMovement:
    """Append one movement snapshotting the product's position AFTER the write."""
    return StockMovement.objects.create(
        product=product,
        movement_type=movement_type,
        quantity=quantity,
        unit_price=unit_price,
        weighted_avg_after=product.weighted_avg_cost,
        balance_after=product.current_stock,
        operation=operation,
        reference_type=reference_type,
        reference_id=str(reference_id or ""),
        notes=notes,
    )


def has_history(product: Product) -> bool:
    return StockMovement.objects.filter(product=product).exists()


def derived_stock(product: Product) -> Decimal:
    total = StockMovement.objects.filter(product=product).aggregate(s=Sum("quantity"))["s"]
    return Decimal(total or 0).quantize(QTY_PLACES)


# ------------------------------------------------------------
# Nozzles
# ------------------------------------------------------------


def get_nozzle(nozzle_id) -> Nozzle:
    try:
        return Nozzle.objects.get(pk=nozzle_id)
    except (Nozzle.DoesNotExist, *_LOOKUP_ERRORS) as exc:
        raise NozzleNotFoundError("Nozzle not found", nozzle_id=nozzle_id) from exc


def lock_nozzles(nozzle_ids) -> dict[str, Nozzle]:
    locked = lock_rows(
        Nozzle, nozzle_ids, not_found=NozzleNotFoundError, id_field="nozzle_id"
    )
    for nozzle_id, nozzle in locked.items():
        if not nozzle.is_active:
            raise NozzleNotFoundError("Nozzle is inactive", nozzle_id=nozzle_id)
    return locked


def advance_nozzle(nozzle: Nozzle, *, closing_reading: Decimal) -> Nozzle:
    return versioned_write(nozzle, current_reading=closing_reading)
