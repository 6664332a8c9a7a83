# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views import (
    AccountViewSet,
    CardPaymentViewSet,
    CardTypeViewSet,
    CashVarianceLogViewSet,
    DailyOperationViewSet,
    ExpenseListCreateView,
    TransactionViewSet,
    TransferCreateView,
)

router = DefaultRouter()
router.register("accounts", AccountViewSet, basename="account")
router.register("transactions", TransactionViewSet, basename="transaction")
router.register("card-types", CardTypeViewSet, basename="card-type")
router.register("card-payments", CardPaymentViewSet, basename="card-payment")
router.register("days", DailyOperationViewSet, basename="day")
router.register("cash-variances", CashVarianceLogViewSet, basename="cash-variance")

urlpatterns = [
    path("", include(router.urls)),
    path("expenses/", ExpenseListCreateView.as_view(), name="expenses"),
    path("transfers/", TransferCreateView.as_view(), name="transfers"),
]
