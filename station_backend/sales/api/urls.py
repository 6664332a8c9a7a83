# sales/api/urls.py

"""
SALES API URLS (CANONICAL)

Rules:
- Explicit non-PK routes (like "record") MUST be registered BEFORE router URLs,
  otherwise the router will treat "record" as a <pk> and you'll get 405.

Provides:
    POST /api/sales/record/
    POST /api/sales/nozzle-readings/   (admin PIN)
    GET  /api/sales/nozzle-readings/preview/
    GET  /api/sales/sales/
    GET  /api/sales/sales/<uuid>/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.viewsets.sale import SaleViewSet
from sales.views.sale import NozzleReadingPreviewView, NozzleReadingView, RecordSaleView

router = DefaultRouter()
router.register(r"sales", SaleViewSet, basename="sales")

urlpatterns = [
    # IMPORTANT: put explicit routes BEFORE router URLs
    path("record/", RecordSaleView.as_view(), name="sales-record"),
    path("nozzle-readings/", NozzleReadingView.as_view(), name="sales-nozzle-readings"),
    path(
        "nozzle-readings/preview/",
        NozzleReadingPreviewView.as_view(),
        name="sales-nozzle-readings-preview",
    ),
    path("", include(router.urls)),
]
