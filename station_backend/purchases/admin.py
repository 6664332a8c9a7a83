# purchases/admin.py

from django.contrib import admin

from products.admin import ReadOnlyAdminMixin
from purchases.models import PurchaseOrder, PurchaseOrderItem, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "account_balance", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")
    readonly_fields = ("account_balance", "version", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False


class PurchaseOrderItemInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "supplier",
        "purchase_date",
        "total_amount",
        "paid_amount",
        "due_amount",
    )
    list_filter = ("purchase_date",)
    search_fields = ("invoice_number", "supplier__name")
    inlines = [PurchaseOrderItemInline]
