# ledger/tests/test_scenarios.py

"""
End-to-end station flows through the public ledger operations.
"""

import threading
from decimal import Decimal

from django.db import connection
from django.test import TestCase, TransactionTestCase

from accounting.models import Account, Transaction
from ledger.services.cash_service import record_transfer
from ledger.services.exceptions import ConcurrentModificationError, InsufficientStockError
from ledger.services.purchase_service import record_purchase
from ledger.services.sale_service import record_sale
from ledger.tests.helpers import make_account, make_product, make_supplier
from products.models import Product, StockMovement
from purchases.models import Supplier
from reports.services.aggregator import reconcile_ledger


class StationScenarioTests(TestCase):
    """
    GUARANTEES:
    - Weighted-average cost follows purchases, COGS follows the average
    - Oversells are rejected with nothing recorded
    - A supplier payment is one transaction touching bank + supplier
    - Every cache still reconciles with its log afterwards
    """

    def setUp(self):
        self.cash = make_account("Cash Drawer", Account.TYPE_CASH, "0.00")
        self.bank = make_account("Main Bank", Account.TYPE_BANK, "200000.00")
        self.supplier = make_supplier()
        self.petrol = make_product("Petrol")

    def _buy(self, qty, price, paid="0"):
        return record_purchase(
            product_id=self.petrol.pk,
            quantity=qty,
            unit_price=price,
            supplier_id=self.supplier.pk,
            paid_amount=paid,
            payment_method="bank",
        )

    def test_purchases_reweight_average_cost(self):
        self._buy("1000", "100")
        self.petrol.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("1000.000"))
        self.assertEqual(self.petrol.weighted_avg_cost, Decimal("100.00"))

        result = self._buy("500", "110")
        self.petrol.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("1500.000"))
        self.assertEqual(self.petrol.weighted_avg_cost, Decimal("103.33"))
        self.assertEqual(self.petrol.stock_value, Decimal("154995.00"))

        item = result.purchase_order.items.get()
        self.assertEqual(item.old_weighted_avg, Decimal("100.00"))
        self.assertEqual(item.new_weighted_avg, Decimal("103.33"))
        self.assertEqual(result.movement.weighted_avg_after, Decimal("103.33"))
        self.assertEqual(reconcile_ledger(), [])

    def test_sale_books_cogs_at_average_cost(self):
        self._buy("1000", "100")
        self._buy("500", "110")

        result = record_sale(
            product_id=self.petrol.pk,
            quantity="200",
            selling_price="120",
            payment_method="cash",
        )

        self.petrol.refresh_from_db()
        self.cash.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("1300.000"))
        self.assertEqual(self.petrol.weighted_avg_cost, Decimal("103.33"))
        self.assertEqual(result.sale.cogs_per_unit, Decimal("103.33"))
        self.assertEqual(result.sale.gross_profit, Decimal("3334.00"))
        self.assertEqual(result.sale.sale_amount, Decimal("24000.00"))
        self.assertEqual(result.movement.quantity, Decimal("-200.000"))
        self.assertEqual(result.transaction.to_account_id, self.cash.pk)
        self.assertEqual(self.cash.current_balance, Decimal("24000.00"))
        self.assertEqual(reconcile_ledger(), [])

    def test_oversell_is_rejected_without_movement(self):
        self._buy("1300", "100")
        movements_before = StockMovement.objects.count()

        with self.assertRaises(InsufficientStockError):
            record_sale(product_id=self.petrol.pk, quantity="2000", selling_price="120")

        self.petrol.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("1300.000"))
        self.assertEqual(StockMovement.objects.count(), movements_before)
        self.assertFalse(Transaction.objects.filter(transaction_type="sale_receipt").exists())

    def test_back_to_back_sales_never_double_deduct(self):
        self._buy("1000", "100")

        record_sale(product_id=self.petrol.pk, quantity="800", selling_price="120")
        with self.assertRaises(InsufficientStockError):
            record_sale(product_id=self.petrol.pk, quantity="800", selling_price="120")

        self.petrol.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("200.000"))

    def test_supplier_payment_from_bank(self):
        self._buy("15", "100")  # 1500 owed
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.account_balance, Decimal("1500.00"))

        bank = make_account("Station Bank", Account.TYPE_BANK, "2000.00")
        txn_before = Transaction.objects.count()

        result = record_transfer(
            from_account_id=bank.pk,
            to_supplier_id=self.supplier.pk,
            amount="500",
        )

        bank.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(bank.current_balance, Decimal("1500.00"))
        self.assertEqual(self.supplier.account_balance, Decimal("1000.00"))
        self.assertEqual(Transaction.objects.count(), txn_before + 1)
        self.assertEqual(result.transaction.supplier_id, self.supplier.pk)
        self.assertIsNone(result.transaction.to_account_id)
        self.assertEqual(reconcile_ledger(), [])

    def test_paid_purchase_debits_bank_and_records_due(self):
        result = self._buy("100", "50", paid="3000")

        self.bank.refresh_from_db()
        self.supplier.refresh_from_db()
        order = result.purchase_order
        self.assertEqual(order.total_amount, Decimal("5000.00"))
        self.assertEqual(order.due_amount, Decimal("2000.00"))
        self.assertEqual(self.bank.current_balance, Decimal("197000.00"))
        self.assertEqual(self.supplier.account_balance, Decimal("2000.00"))
        self.assertEqual(result.transaction.from_account_id, self.bank.pk)
        self.assertEqual(reconcile_ledger(), [])


class ConcurrentSaleTests(TransactionTestCase):
    """
    Two tills selling from the same tank at the same moment, on real threads
    with their own database connections.

    GUARANTEES:
    - Exactly one of two 800 L sales against 1000 L succeeds
    - The loser is rejected, never clamped; stock ends at 200 L
    """

    def setUp(self):
        make_account("Cash Drawer", Account.TYPE_CASH, "0.00")
        self.supplier = Supplier.objects.create(name="Depot")
        self.product = Product.objects.create(name="Diesel", selling_price=Decimal("120.00"))
        record_purchase(
            product_id=self.product.pk,
            quantity="1000",
            unit_price="100",
            supplier_id=self.supplier.pk,
        )

    def test_only_one_of_two_competing_sales_succeeds(self):
        barrier = threading.Barrier(2)
        outcomes = []

        def sell():
            try:
                barrier.wait()
                record_sale(product_id=self.product.pk, quantity="800", selling_price="120")
                outcomes.append("ok")
            except (InsufficientStockError, ConcurrentModificationError) as exc:
                outcomes.append(type(exc).__name__)
            finally:
                connection.close()

        threads = [threading.Thread(target=sell) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.product.refresh_from_db()
        self.assertEqual(sorted(outcomes), ["InsufficientStockError", "ok"])
        self.assertEqual(self.product.current_stock, Decimal("200.000"))
        self.assertEqual(
            StockMovement.objects.filter(product=self.product, movement_type="sale").count(), 1
        )
        self.assertEqual(reconcile_ledger(), [])
