from .sale import (
    NozzleReadingPreviewQuerySerializer,
    NozzleReadingPreviewSerializer,
    NozzleReadingSerializer,
    SaleCreateSerializer,
    SaleSerializer,
)

__all__ = [
    "NozzleReadingPreviewQuerySerializer",
    "NozzleReadingPreviewSerializer",
    "NozzleReadingSerializer",
    "SaleCreateSerializer",
    "SaleSerializer",
]
