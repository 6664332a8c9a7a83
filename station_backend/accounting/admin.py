# accounting/admin.py

from django.contrib import admin

from accounting.models import (
    Account,
    CardPayment,
    CardType,
    CashVarianceLog,
    DailyOperation,
    Expense,
    Transaction,
)
from products.admin import ReadOnlyAdminMixin


# ======================================================
# ACCOUNT ADMIN
# ======================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("name", "account_type", "opening_balance", "current_balance", "status")
    list_filter = ("account_type", "status")
    search_fields = ("name",)
    readonly_fields = ("current_balance", "version", "created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return (*self.readonly_fields, "account_type", "opening_balance")
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# TRANSACTION LOG (append-only)
# ======================================================


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "created_at",
        "transaction_type",
        "amount",
        "from_account",
        "to_account",
        "supplier",
        "reference_type",
    )
    list_filter = ("transaction_type", "payment_method", "created_at")
    search_fields = ("description", "reference_id", "category")


@admin.register(Expense)
class ExpenseAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("expense_date", "category", "amount", "account", "payment_method")
    list_filter = ("category", "expense_date")
    search_fields = ("category", "description")


# ======================================================
# CARDS
# ======================================================


@admin.register(CardType)
class CardTypeAdmin(admin.ModelAdmin):
    list_display = ("card_name", "tax_percentage", "is_active")
    list_filter = ("is_active",)
    search_fields = ("card_name",)

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CardPayment)
class CardPaymentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("payment_date", "card_type", "amount", "tax_amount", "net_amount", "status", "account")
    list_filter = ("status", "card_type", "payment_date")


# ======================================================
# CASH DRAWER DAYS
# ======================================================


class CashVarianceInline(admin.TabularInline):
    model = CashVarianceLog
    extra = 0
    can_delete = False
    readonly_fields = (
        "variance_type",
        "expected_amount",
        "actual_amount",
        "difference",
        "variance_percentage",
        "within_tolerance",
        "explanation",
    )
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(DailyOperation)
class DailyOperationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "operation_date",
        "status",
        "opening_cash_actual",
        "closing_cash_expected",
        "closing_cash_actual",
        "closing_cash_variance",
    )
    list_filter = ("status",)
    inlines = [CashVarianceInline]


@admin.register(CashVarianceLog)
class CashVarianceLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("variance_date", "variance_type", "expected_amount", "actual_amount", "difference", "within_tolerance")
    list_filter = ("variance_type", "within_tolerance")
