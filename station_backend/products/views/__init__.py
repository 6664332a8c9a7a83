# products/views/__init__.py

"""
Products views package exports.

Purpose:
- Central export point for router imports.
"""

from .nozzle import NozzleViewSet
from .product import ProductViewSet
from .stock_movement import StockMovementViewSet

__all__ = [
    "NozzleViewSet",
    "ProductViewSet",
    "StockMovementViewSet",
]
