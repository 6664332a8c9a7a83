# reports/tests/test_reports.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account
from ledger.services.cash_service import record_expense
from ledger.services.purchase_service import record_purchase
from ledger.services.sale_service import record_nozzle_sale, record_sale
from ledger.tests.helpers import make_account, make_nozzle, make_product, make_supplier, make_user
from products.models import Product
from purchases.models import Supplier
from reports.services.aggregator import build_period_report, low_stock_products, reconcile_ledger


# ============================================================
# Period report
# ============================================================


class PeriodReportTests(TestCase):
    """
    GUARANTEES:
    - gross_profit = sales - COGS, net_profit = gross_profit - expenses
    - Breakdowns add up to the totals
    - A clean ledger produces no warnings
    """

    def setUp(self):
        self.cash = make_account("Cash Drawer", Account.TYPE_CASH)
        self.supplier = make_supplier("Lanka Fuel Depot")
        self.petrol = make_product("Petrol")
        self.diesel = make_product("Diesel", selling_price="110.00")

        record_purchase(product_id=self.petrol.pk, quantity="1000", unit_price="100", supplier_id=self.supplier.pk)
        record_purchase(product_id=self.diesel.pk, quantity="500", unit_price="90", supplier_id=self.supplier.pk)
        record_sale(product_id=self.petrol.pk, quantity="200", selling_price="120")
        record_sale(product_id=self.diesel.pk, quantity="100", selling_price="110")
        record_expense(amount="500", category="Electricity", payment_method="cash")
        record_expense(amount="250", category="Water", payment_method="cash")
        record_expense(amount="50", category="Electricity", payment_method="cash")

    def test_totals(self):
        totals = build_period_report()["totals"]

        self.assertEqual(totals["sales"], Decimal("35000.00"))
        self.assertEqual(totals["quantity_sold"], Decimal("300.000"))
        self.assertEqual(totals["cogs"], Decimal("29000.00"))
        self.assertEqual(totals["gross_profit"], Decimal("6000.00"))
        self.assertEqual(totals["gross_margin_pct"], Decimal("17.14"))
        self.assertEqual(totals["purchases"], Decimal("145000.00"))
        self.assertEqual(totals["purchases_paid"], Decimal("0.00"))
        self.assertEqual(totals["purchases_due"], Decimal("145000.00"))
        self.assertEqual(totals["expenses"], Decimal("800.00"))
        self.assertEqual(totals["net_profit"], Decimal("5200.00"))

    def test_breakdowns(self):
        report = build_period_report()

        by_product = {row["name"]: row for row in report["by_product"]}
        self.assertEqual(list(by_product), ["Diesel", "Petrol"])
        self.assertEqual(by_product["Petrol"]["gross_profit"], Decimal("4000.00"))
        self.assertEqual(by_product["Petrol"]["margin_pct"], Decimal("16.67"))
        self.assertEqual(by_product["Diesel"]["volume"], Decimal("100.000"))

        self.assertEqual(
            report["expenses_by_category"],
            {"Electricity": Decimal("550.00"), "Water": Decimal("250.00")},
        )

        supplier = report["suppliers"][0]
        self.assertEqual(supplier["due"], Decimal("145000.00"))
        self.assertEqual(supplier["current_balance"], Decimal("145000.00"))

        cash = report["accounts"][0]
        self.assertEqual(cash["inflow"], Decimal("35000.00"))
        self.assertEqual(cash["outflow"], Decimal("800.00"))
        self.assertEqual(cash["closing"], cash["current_balance"])
        self.assertEqual(report["warnings"], [])

    def test_product_filter(self):
        totals = build_period_report(product_id=self.diesel.pk)["totals"]

        self.assertEqual(totals["sales"], Decimal("11000.00"))
        self.assertEqual(totals["purchases"], Decimal("45000.00"))

    def test_date_window(self):
        nozzle = make_nozzle(self.petrol, "P1")
        record_nozzle_sale(nozzle_id=nozzle.pk, closing_reading="10", reading_date=date(2024, 1, 15))
        record_expense(amount="20", category="Water", payment_method="cash", expense_date=date(2024, 1, 20))

        january = build_period_report(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))["totals"]

        self.assertEqual(january["sales"], Decimal("1200.00"))
        self.assertEqual(january["expenses"], Decimal("20.00"))
        self.assertEqual(january["purchases"], Decimal("0.00"))

    def test_account_flows_follow_backdated_business_dates(self):
        nozzle = make_nozzle(self.petrol, "P1")
        record_nozzle_sale(nozzle_id=nozzle.pk, closing_reading="10", reading_date=date(2024, 1, 15))
        record_expense(amount="20", category="Water", payment_method="cash", expense_date=date(2024, 1, 20))

        report = build_period_report(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))
        drawer = next(a for a in report["accounts"] if a["name"] == "Cash Drawer")

        self.assertEqual(drawer["opening"], Decimal("0.00"))
        self.assertEqual(drawer["inflow"], Decimal("1200.00"))
        self.assertEqual(drawer["outflow"], Decimal("20.00"))
        self.assertEqual(drawer["closing"], Decimal("1180.00"))

        february = build_period_report(date_from=date(2024, 2, 1), date_to=date(2024, 2, 29))
        drawer = next(a for a in february["accounts"] if a["name"] == "Cash Drawer")
        self.assertEqual(drawer["opening"], Decimal("1180.00"))
        self.assertEqual(drawer["inflow"], Decimal("0.00"))

    def test_empty_window(self):
        totals = build_period_report(date_from=date(2000, 1, 1), date_to=date(2000, 12, 31))["totals"]

        self.assertEqual(totals["sales"], Decimal("0.00"))
        self.assertEqual(totals["gross_margin_pct"], Decimal("0.00"))


# ============================================================
# Integrity reconciliation
# ============================================================


class ReconciliationTests(TestCase):
    def setUp(self):
        self.cash = make_account("Cash Drawer", Account.TYPE_CASH, "100.00")
        self.supplier = make_supplier()
        self.petrol = make_product("Petrol")
        record_purchase(product_id=self.petrol.pk, quantity="50", unit_price="100", supplier_id=self.supplier.pk)
        record_sale(product_id=self.petrol.pk, quantity="5", selling_price="120")

    def test_clean_ledger(self):
        self.assertEqual(reconcile_ledger(), [])

    def test_tampered_caches_are_reported(self):
        Account.objects.filter(pk=self.cash.pk).update(current_balance=Decimal("1.00"))
        Product.objects.filter(pk=self.petrol.pk).update(current_stock=Decimal("999.000"))
        Supplier.objects.filter(pk=self.supplier.pk).update(account_balance=Decimal("0.00"))

        with self.assertLogs("reports", level="WARNING"):
            warnings = reconcile_ledger()

        entities = [w["context"]["entity"] for w in warnings]
        self.assertIn("account", entities)
        self.assertIn("product", entities)
        self.assertIn("supplier", entities)
        self.assertTrue(all(w["code"] == "integrity_violation" for w in warnings))
        self.assertTrue(all(w["severity"] == "warning" for w in warnings))

        account_warning = next(w for w in warnings if w["context"]["entity"] == "account")
        self.assertEqual(account_warning["context"]["derived"], "700.00")

    def test_report_still_builds_with_warnings(self):
        Account.objects.filter(pk=self.cash.pk).update(current_balance=Decimal("1.00"))

        with self.assertLogs("reports", level="WARNING"):
            report = build_period_report()

        self.assertEqual(report["totals"]["sales"], Decimal("600.00"))
        self.assertEqual(len(report["warnings"]), 1)

    def test_verify_ledger_command(self):
        out = StringIO()
        call_command("verify_ledger", "--strict", stdout=out, stderr=StringIO())
        self.assertIn("[OK]", out.getvalue())

        Account.objects.filter(pk=self.cash.pk).update(current_balance=Decimal("1.00"))
        with self.assertLogs("reports", level="WARNING"):
            call_command("verify_ledger", stdout=StringIO(), stderr=StringIO())
            with self.assertRaises(SystemExit):
                call_command("verify_ledger", "--strict", stdout=StringIO(), stderr=StringIO())


class LowStockTests(TestCase):
    def test_only_active_products_at_or_below_minimum(self):
        make_product("Petrol", minimum_stock_level=Decimal("100"))
        make_product("Diesel", minimum_stock_level=Decimal("0"), is_active=False)

        self.assertEqual([row["name"] for row in low_stock_products()], ["Petrol"])


# ============================================================
# HTTP
# ============================================================


class ReportsApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())
        make_account("Cash Drawer", Account.TYPE_CASH)
        petrol = make_product("Petrol")
        record_purchase(product_id=petrol.pk, quantity="10", unit_price="100", supplier_id=make_supplier().pk)
        record_sale(product_id=petrol.pk, quantity="1", selling_price="120")

    def test_summary_renders_decimals_as_strings(self):
        response = self.client.get("/api/reports/summary/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["totals"]["gross_profit"], "20.00")
        self.assertEqual(response.data["warnings"], [])

    def test_inverted_window_is_400(self):
        response = self.client.get("/api/reports/summary/?date_from=2024-02-01&date_to=2024-01-01")
        self.assertEqual(response.status_code, 400)

    def test_reconciliation_endpoint(self):
        response = self.client.get("/api/reports/reconciliation/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"ok": True, "warnings": []})

    def test_reports_require_authentication(self):
        self.assertEqual(APIClient().get("/api/reports/summary/").status_code, 401)


class ProjectRoutesTests(TestCase):
    def test_public_root_and_health(self):
        client = APIClient()

        root = client.get("/api/")
        self.assertEqual(root.status_code, 200)
        self.assertEqual(root.data["modules"]["reports"], "/api/reports/")

        health = client.get("/api/health/")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.data, {"status": "ok", "db": "ok"})
