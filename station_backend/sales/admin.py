# sales/admin.py

from django.contrib import admin

from products.admin import ReadOnlyAdminMixin
from sales.models.sale import Sale


# ======================================================
# SALE ADMIN (immutable)
# ======================================================


@admin.register(Sale)
class SaleAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "invoice_no",
        "product",
        "nozzle",
        "quantity",
        "sale_amount",
        "cogs_per_unit",
        "gross_profit",
        "payment_method",
        "created_at",
    )
    search_fields = ("invoice_no", "product__name")
    list_filter = ("payment_method", "sale_date")
