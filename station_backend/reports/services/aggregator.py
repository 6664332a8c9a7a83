# reports/services/aggregator.py

"""
REPORTING AGGREGATOR (READ-ONLY)

Period report over the append-only logs (Sale, PurchaseOrder, Expense,
Transaction, CardPayment) plus integrity reconciliation of every cached
balance.

Key rules:
- Never writes. Safe to run at any time, concurrently with the ledger
- Integrity failures become `warnings` entries; they never fail a report
- Amounts are Decimals quantized to 2 places, quantities to 3 places
- Every log is windowed on its business date (sale_date, purchase_date,
  expense_date, transaction_date, payment_date), never on insert time
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import F, Q, Sum
from django.utils import timezone

from accounting.models import Account, CardPayment, Expense, Transaction
from accounting.services.account_store import derived_balance
from ledger.services.costing import QTY_PLACES, TWOPLACES, stock_value
from ledger.services.exceptions import IntegrityViolationError
from products.models import Product
from products.services.product_ledger import derived_stock, low_stock_queryset
from purchases.models import PurchaseOrder, PurchaseOrderItem, Supplier
from purchases.services.supplier_store import derived_supplier_balance
from sales.models import Sale

logger = logging.getLogger("reports")

ZERO = Decimal("0.00")


def _q2(amount) -> Decimal:
    return Decimal(amount or 0).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _q3(amount) -> Decimal:
    return Decimal(amount or 0).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def _margin_pct(profit: Decimal, revenue: Decimal) -> Decimal:
    if not revenue:
        return ZERO
    return _q2(profit * Decimal("100") / revenue)


def _in_window(qs, field: str, date_from, date_to):
    if date_from:
        qs = qs.filter(**{f"{field}__gte": date_from})
    if date_to:
        qs = qs.filter(**{f"{field}__lte": date_to})
    return qs


# ------------------------------------------------------------
# Integrity
# ------------------------------------------------------------


def _violation(message: str, **context) -> dict:
    warning = IntegrityViolationError(message, **context).as_warning()
    logger.warning("Ledger integrity violation", extra={"detail": message, **warning["context"]})
    return warning


def reconcile_ledger() -> list[dict]:
    """
    Check every cache against the log it is derived from.

    - account.current_balance == opening_balance + signed sum of transactions
    - product.current_stock == sum of movements
    - product.stock_value == current_stock x weighted_avg_cost
    - purchase_order.due_amount == total_amount - paid_amount
    - supplier.account_balance == sum of dues - transfers paid
    - card_payment.net_amount == amount - tax_amount, and a received
      payment's settlement transaction carries exactly the net amount
    """
    warnings = []

    for account in Account.objects.order_by("pk"):
        expected = derived_balance(account)
        if _q2(account.current_balance) != expected:
            warnings.append(
                _violation(
                    f"Account '{account.name}' balance does not match its transactions",
                    entity="account",
                    account_id=account.pk,
                    cached=account.current_balance,
                    derived=expected,
                )
            )

    for product in Product.objects.order_by("name"):
        expected_qty = derived_stock(product)
        if _q3(product.current_stock) != expected_qty:
            warnings.append(
                _violation(
                    f"Product '{product.name}' stock does not match its movements",
                    entity="product",
                    product_id=product.pk,
                    cached=product.current_stock,
                    derived=expected_qty,
                )
            )

        expected_value = stock_value(Decimal(product.current_stock), Decimal(product.weighted_avg_cost))
        if _q2(product.stock_value) != expected_value:
            warnings.append(
                _violation(
                    f"Product '{product.name}' stock value is not stock x average cost",
                    entity="product",
                    product_id=product.pk,
                    cached=product.stock_value,
                    derived=expected_value,
                )
            )

    bad_orders = PurchaseOrder.objects.exclude(
        due_amount=F("total_amount") - F("paid_amount")
    )
    for order in bad_orders:
        warnings.append(
            _violation(
                "Purchase order due amount is not total - paid",
                entity="purchase_order",
                purchase_order_id=order.pk,
                total_amount=order.total_amount,
                paid_amount=order.paid_amount,
                due_amount=order.due_amount,
            )
        )

    for supplier in Supplier.objects.order_by("name"):
        expected = derived_supplier_balance(supplier)
        if _q2(supplier.account_balance) != expected:
            warnings.append(
                _violation(
                    f"Supplier '{supplier.name}' balance does not match purchases and payments",
                    entity="supplier",
                    supplier_id=supplier.pk,
                    cached=supplier.account_balance,
                    derived=expected,
                )
            )

    for payment in CardPayment.objects.select_related("settlement_transaction").order_by("pk"):
        if _q2(payment.amount) - _q2(payment.tax_amount) != _q2(payment.net_amount):
            warnings.append(
                _violation(
                    "Card payment net amount is not amount - tax",
                    entity="card_payment",
                    card_payment_id=payment.pk,
                    amount=payment.amount,
                    tax_amount=payment.tax_amount,
                    net_amount=payment.net_amount,
                )
            )
        settled = payment.settlement_transaction
        settled_amount = _q2(settled.amount) if settled else ZERO
        if payment.status == CardPayment.STATUS_RECEIVED and settled_amount != _q2(payment.net_amount):
            warnings.append(
                _violation(
                    "Card settlement does not match the payment's net amount",
                    entity="card_payment",
                    card_payment_id=payment.pk,
                    net_amount=payment.net_amount,
                    settled=settled_amount,
                )
            )

    return warnings


# ------------------------------------------------------------
# Account reconciliation (window)
# ------------------------------------------------------------


def _account_flows(account: Account, *, date_from=None, date_to=None) -> dict:
    txns = Transaction.objects.filter(Q(from_account=account) | Q(to_account=account))

    before = ZERO
    if date_from:
        prior = txns.filter(transaction_date__lt=date_from).aggregate(
            inflow=Sum("amount", filter=Q(to_account=account)),
            outflow=Sum("amount", filter=Q(from_account=account)),
        )
        before = _q2(prior["inflow"]) - _q2(prior["outflow"])

    window = _in_window(txns, "transaction_date", date_from, date_to).aggregate(
        inflow=Sum("amount", filter=Q(to_account=account)),
        outflow=Sum("amount", filter=Q(from_account=account)),
    )

    opening = _q2(account.opening_balance) + before
    inflow = _q2(window["inflow"])
    outflow = _q2(window["outflow"])

    return {
        "account_id": account.pk,
        "name": account.name,
        "account_type": account.account_type,
        "opening": opening,
        "inflow": inflow,
        "outflow": outflow,
        "closing": opening + inflow - outflow,
        "current_balance": _q2(account.current_balance),
    }


# ------------------------------------------------------------
# Period report
# ------------------------------------------------------------


def build_period_report(
    *,
    date_from=None,
    date_to=None,
    product_id=None,
    payment_method=None,
    supplier_id=None,
) -> dict:
    """
    Totals + breakdowns for [date_from, date_to] (inclusive, either open).

    Filters:
    - product_id narrows sales and purchase lines
    - payment_method narrows sales, purchases and expenses
    - supplier_id narrows purchases and the supplier summary
    """
    sales = _in_window(Sale.objects.all(), "sale_date", date_from, date_to)
    orders = _in_window(PurchaseOrder.objects.all(), "purchase_date", date_from, date_to)
    expenses = _in_window(Expense.objects.all(), "expense_date", date_from, date_to)
    cards = _in_window(CardPayment.objects.all(), "payment_date", date_from, date_to)

    if product_id:
        sales = sales.filter(product_id=product_id)
        cards = cards.filter(sale__product_id=product_id)
        orders = orders.filter(
            pk__in=PurchaseOrderItem.objects.filter(product_id=product_id).values("purchase_order_id")
        )
    if payment_method:
        sales = sales.filter(payment_method=payment_method)
        orders = orders.filter(payment_method=payment_method)
        expenses = expenses.filter(payment_method=payment_method)
        if payment_method != "card":
            cards = cards.none()
    if supplier_id:
        orders = orders.filter(supplier_id=supplier_id)

    # ---------------- sales ----------------
    sale_totals = sales.aggregate(
        revenue=Sum("sale_amount"),
        quantity=Sum("quantity"),
        cogs=Sum("total_cogs"),
        gross_profit=Sum("gross_profit"),
    )
    total_sales = _q2(sale_totals["revenue"])
    total_cogs = _q2(sale_totals["cogs"])
    gross_profit = _q2(sale_totals["gross_profit"])

    by_product = []
    rows = (
        sales.values("product_id", "product__name", "product__unit")
        .annotate(
            volume=Sum("quantity"),
            revenue=Sum("sale_amount"),
            cogs=Sum("total_cogs"),
            gross_profit=Sum("gross_profit"),
        )
        .order_by("product__name")
    )
    for row in rows:
        revenue = _q2(row["revenue"])
        profit = _q2(row["gross_profit"])
        by_product.append(
            {
                "product_id": row["product_id"],
                "name": row["product__name"],
                "unit": row["product__unit"],
                "volume": _q3(row["volume"]),
                "revenue": revenue,
                "cogs": _q2(row["cogs"]),
                "gross_profit": profit,
                "margin_pct": _margin_pct(profit, revenue),
            }
        )

    # ---------------- purchases ----------------
    if product_id:
        lines = PurchaseOrderItem.objects.filter(purchase_order__in=orders, product_id=product_id)
        total_purchases = _q2(lines.aggregate(s=Sum("line_total"))["s"])
    else:
        total_purchases = _q2(orders.aggregate(s=Sum("total_amount"))["s"])

    order_totals = orders.aggregate(paid=Sum("paid_amount"), due=Sum("due_amount"))

    supplier_summary = []
    supplier_rows = (
        orders.values("supplier_id", "supplier__name", "supplier__account_balance")
        .annotate(
            purchases=Sum("total_amount"),
            paid=Sum("paid_amount"),
            due=Sum("due_amount"),
        )
        .order_by("supplier__name")
    )
    for row in supplier_rows:
        supplier_summary.append(
            {
                "supplier_id": row["supplier_id"],
                "name": row["supplier__name"],
                "purchases": _q2(row["purchases"]),
                "paid": _q2(row["paid"]),
                "due": _q2(row["due"]),
                "current_balance": _q2(row["supplier__account_balance"]),
            }
        )

    # ---------------- expenses ----------------
    expenses_by_category = defaultdict(lambda: ZERO)
    for row in expenses.values("category").annotate(total=Sum("amount")).order_by("category"):
        expenses_by_category[row["category"]] += _q2(row["total"])
    total_expenses = _q2(sum(expenses_by_category.values(), ZERO))

    # ---------------- card payments ----------------
    card_totals = cards.aggregate(
        gross=Sum("amount"),
        tax=Sum("tax_amount"),
        on_hold=Sum("amount", filter=Q(status=CardPayment.STATUS_HOLD)),
    )

    # ---------------- accounts ----------------
    accounts = [
        _account_flows(account, date_from=date_from, date_to=date_to)
        for account in Account.objects.order_by("pk")
    ]

    warnings = reconcile_ledger()

    report = {
        "period": {"date_from": date_from, "date_to": date_to},
        "filters": {
            "product_id": product_id,
            "payment_method": payment_method,
            "supplier_id": supplier_id,
        },
        "totals": {
            "sales": total_sales,
            "quantity_sold": _q3(sale_totals["quantity"]),
            "cogs": total_cogs,
            "gross_profit": gross_profit,
            "gross_margin_pct": _margin_pct(gross_profit, total_sales),
            "purchases": total_purchases,
            "purchases_paid": _q2(order_totals["paid"]),
            "purchases_due": _q2(order_totals["due"]),
            "expenses": total_expenses,
            "net_profit": gross_profit - total_expenses,
        },
        "cards": {
            "sales": _q2(card_totals["gross"]),
            "tax": _q2(card_totals["tax"]),
            "on_hold": _q2(card_totals["on_hold"]),
        },
        "by_product": by_product,
        "expenses_by_category": dict(expenses_by_category),
        "suppliers": supplier_summary,
        "accounts": accounts,
        "warnings": warnings,
        "generated_at": timezone.now(),
    }

    logger.info(
        "Period report built",
        extra={
            "date_from": str(date_from),
            "date_to": str(date_to),
            "sales": str(total_sales),
            "warnings": len(warnings),
        },
    )
    return report


# ------------------------------------------------------------
# Low stock
# ------------------------------------------------------------


def low_stock_products() -> list[dict]:
    """Active products at or below their minimum stock level."""
    return [
        {
            "product_id": p.pk,
            "name": p.name,
            "product_type": p.product_type,
            "current_stock": _q3(p.current_stock),
            "minimum_stock_level": _q3(p.minimum_stock_level),
            "tank_capacity": p.tank_capacity,
            "tank_utilisation_pct": p.tank_utilisation,
        }
        for p in low_stock_queryset()
    ]
