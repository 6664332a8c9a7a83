# ledger/admin.py

from django.contrib import admin

from ledger.models import LedgerOperation
from products.admin import ReadOnlyAdminMixin


@admin.register(LedgerOperation)
class LedgerOperationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "kind", "idempotency_key", "created_at")
    list_filter = ("kind", "created_at")
    search_fields = ("idempotency_key",)
