# reports/api/urls.py

from django.urls import path

from reports.api.views import LowStockView, PeriodReportView, ReconciliationView

urlpatterns = [
    path("summary/", PeriodReportView.as_view(), name="reports-summary"),
    path("reconciliation/", ReconciliationView.as_view(), name="reports-reconciliation"),
    path("low-stock/", LowStockView.as_view(), name="reports-low-stock"),
]
