# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseOrderListCreateView,
    SupplierDetailView,
    SupplierListCreateView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchase-suppliers"),
    path(
        "suppliers/<uuid:supplier_id>/",
        SupplierDetailView.as_view(),
        name="purchase-supplier-detail",
    ),
    path("orders/", PurchaseOrderListCreateView.as_view(), name="purchase-orders"),
]
