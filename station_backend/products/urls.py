# products/urls.py

"""
PRODUCTS URLS

Purpose:
- Register product domain routes under /api/products/
- Includes viewset actions like:
    /products/products/<id>/adjust/
    /products/products/<id>/initial-stock/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import NozzleViewSet, ProductViewSet, StockMovementViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"stock-movements", StockMovementViewSet, basename="stock-movements")
router.register(r"nozzles", NozzleViewSet, basename="nozzles")

urlpatterns = [
    path("", include(router.urls)),
]
