from .nozzle import NozzleSerializer
from .product import InitialStockSerializer, ProductSerializer, StockAdjustmentSerializer
from .stock_movement import StockMovementSerializer

__all__ = [
    "InitialStockSerializer",
    "NozzleSerializer",
    "ProductSerializer",
    "StockAdjustmentSerializer",
    "StockMovementSerializer",
]
