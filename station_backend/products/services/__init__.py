from .product_ledger import (
    append_movement,
    get_nozzle,
    lock_nozzles,
    lock_products,
    low_stock_queryset,
    write_position,
)

__all__ = [
    "append_movement",
    "get_nozzle",
    "lock_nozzles",
    "lock_products",
    "low_stock_queryset",
    "write_position",
]
