# accounting/api/views/accounts.py

"""
ACCOUNTS API

GET   /api/accounting/accounts/          list (filter: ?account_type=&status=)
POST  /api/accounting/accounts/          create (current_balance = opening_balance)
GET   /api/accounting/accounts/<id>/
PATCH /api/accounting/accounts/<id>/     name / status only

Accounts are never deleted; deactivate instead.
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ModelViewSet

from accounting.api.serializers import AccountSerializer
from accounting.models import Account


@extend_schema(tags=["accounting"])
class AccountViewSet(ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer
    http_method_names = ["get", "post", "patch", "head", "options"]
    filterset_fields = ["account_type", "status"]

    queryset = Account.objects.all().order_by("id")
