# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe inventory):

- Product catalogue fields are editable.
- Stock position (current_stock, weighted_avg_cost, stock_value) is
  ledger-managed and read-only here. Use the adjust / initial-stock API.
- StockMovement rows are append-only: view only, never add/edit/delete.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Nozzle, Product, StockMovement


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class NozzleInline(admin.TabularInline):
    model = Nozzle
    extra = 0
    fields = ("nozzle_number", "pump_number", "side", "initial_reading", "current_reading", "is_active")
    readonly_fields = ("current_reading",)
    can_delete = False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "product_type",
        "current_stock",
        "weighted_avg_cost",
        "stock_value",
        "selling_price",
        "minimum_stock_level",
        "is_active",
    )
    list_filter = ("product_type", "is_active")
    search_fields = ("name",)
    readonly_fields = (
        "current_stock",
        "weighted_avg_cost",
        "stock_value",
        "version",
        "created_at",
        "updated_at",
    )
    inlines = [NozzleInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "product",
        "movement_type",
        "quantity",
        "unit_price",
        "weighted_avg_after",
        "balance_after",
        "created_at",
    )
    list_filter = ("movement_type", "created_at")
    search_fields = ("product__name", "reference_id", "notes")


@admin.register(Nozzle)
class NozzleAdmin(admin.ModelAdmin):
    list_display = ("nozzle_number", "pump_number", "side", "product", "current_reading", "is_active")
    list_filter = ("pump_number", "is_active")
    readonly_fields = ("current_reading", "version", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False
