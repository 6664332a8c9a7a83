# purchases/tests/test_purchases.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account, Transaction
from ledger.services.exceptions import (
    InsufficientFundsError,
    InvalidQuantityError,
    ProductNotFoundError,
    SupplierNotFoundError,
)
from ledger.services.purchase_service import record_purchase, record_purchase_order
from ledger.tests.helpers import make_account, make_product, make_supplier, make_user
from products.models import Product, StockMovement
from purchases.models import PurchaseOrder, PurchaseOrderItem
from purchases.services.supplier_store import derived_supplier_balance


class PurchaseOrderTests(TestCase):
    """
    GUARANTEES:
    - Every line moves stock and re-weights its product's average cost
    - due_amount = total - paid, and the unpaid part is owed to the supplier
    - A failing line rejects the whole order
    """

    def setUp(self):
        self.bank = make_account("Main Bank", Account.TYPE_BANK, "10000.00")
        self.supplier = make_supplier("Lanka Fuel Depot")
        self.petrol = make_product("Petrol")
        self.engine_oil = make_product(
            "Engine Oil 1L", product_type=Product.ProductType.OIL_LUBRICANT, unit="bottle"
        )

    def _lines(self):
        return [
            {"product_id": str(self.petrol.pk), "quantity": "1000", "unit_price": "100"},
            {"product_id": str(self.engine_oil.pk), "quantity": "24", "unit_price": "850"},
        ]

    def test_multi_line_order(self):
        result = record_purchase_order(
            supplier_id=self.supplier.pk,
            lines=self._lines(),
            paid_amount="5000",
            payment_method="bank",
            invoice_number="INV-7781",
        )

        order = result.purchase_order
        self.assertEqual(order.total_amount, Decimal("120400.00"))
        self.assertEqual(order.paid_amount, Decimal("5000.00"))
        self.assertEqual(order.due_amount, Decimal("115400.00"))
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(len(result.movements), 2)

        self.petrol.refresh_from_db()
        self.engine_oil.refresh_from_db()
        self.bank.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("1000.000"))
        self.assertEqual(self.engine_oil.weighted_avg_cost, Decimal("850.00"))
        self.assertEqual(self.bank.current_balance, Decimal("5000.00"))
        self.assertEqual(self.supplier.account_balance, Decimal("115400.00"))
        self.assertEqual(derived_supplier_balance(self.supplier), Decimal("115400.00"))

        txn = result.transaction
        self.assertEqual(txn.transaction_type, Transaction.TYPE_PURCHASE_PAYMENT)
        self.assertEqual(txn.reference_id, str(order.pk))
        self.assertEqual(txn.supplier_id, self.supplier.pk)

    def test_unpaid_order_creates_no_transaction(self):
        result = record_purchase(
            product_id=self.petrol.pk,
            quantity="10",
            unit_price="100",
            supplier_id=self.supplier.pk,
        )

        self.assertIsNone(result.transaction)
        self.assertIsNone(result.purchase_order.account)
        self.assertFalse(Transaction.objects.exists())

    def test_unknown_product_rejects_entire_order(self):
        lines = self._lines() + [
            {"product_id": "11111111-1111-1111-1111-111111111111", "quantity": "1", "unit_price": "1"}
        ]

        with self.assertRaises(ProductNotFoundError):
            record_purchase_order(supplier_id=self.supplier.pk, lines=lines)

        self.petrol.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("0.000"))
        self.assertFalse(PurchaseOrder.objects.exists())
        self.assertFalse(StockMovement.objects.exists())

    def test_payment_larger_than_balance_rejects_order(self):
        with self.assertRaises(InsufficientFundsError):
            record_purchase(
                product_id=self.petrol.pk,
                quantity="200",
                unit_price="100",
                supplier_id=self.supplier.pk,
                paid_amount="20000",
                payment_method="bank",
            )

        self.petrol.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.petrol.current_stock, Decimal("0.000"))
        self.assertEqual(self.supplier.account_balance, Decimal("0.00"))

    def test_overpaying_an_order_is_invalid(self):
        with self.assertRaises(InvalidQuantityError):
            record_purchase(
                product_id=self.petrol.pk,
                quantity="1",
                unit_price="100",
                supplier_id=self.supplier.pk,
                paid_amount="100.01",
                payment_method="bank",
            )

    def test_inactive_supplier_is_rejected(self):
        self.supplier.is_active = False
        self.supplier.save()

        with self.assertRaises(SupplierNotFoundError):
            record_purchase(
                product_id=self.petrol.pk, quantity="1", unit_price="1", supplier_id=self.supplier.pk
            )

    def test_orders_and_items_are_immutable(self):
        result = record_purchase(
            product_id=self.petrol.pk, quantity="5", unit_price="100", supplier_id=self.supplier.pk
        )
        order = result.purchase_order
        item = PurchaseOrderItem.objects.get(purchase_order=order)

        with self.assertRaises(ValidationError):
            order.save()
        with self.assertRaises(ValidationError):
            item.delete()


class PurchaseApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())
        make_account("Cash Drawer", Account.TYPE_CASH, "1000.00")
        self.supplier = make_supplier()
        self.petrol = make_product("Petrol")

    def test_create_order(self):
        response = self.client.post(
            "/api/purchases/orders/",
            {
                "supplier_id": str(self.supplier.pk),
                "items": [{"product_id": str(self.petrol.pk), "quantity": "10", "unit_price": "101.50"}],
                "paid_amount": "15.00",
                "payment_method": "cash",
                "idempotency_key": "po-1",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["total_amount"], "1015.00")
        self.assertEqual(response.data["due_amount"], "1000.00")
        self.assertEqual(response.data["items"][0]["new_weighted_avg"], "101.50")

    def test_supplier_balance_is_read_only(self):
        response = self.client.patch(
            f"/api/purchases/suppliers/{self.supplier.pk}/",
            {"phone": "0771234567", "account_balance": "-99999"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.phone, "0771234567")
        self.assertEqual(self.supplier.account_balance, Decimal("0.00"))

    def test_unknown_supplier_is_404(self):
        response = self.client.post(
            "/api/purchases/orders/",
            {
                "supplier_id": "22222222-2222-2222-2222-222222222222",
                "items": [{"product_id": str(self.petrol.pk), "quantity": "1", "unit_price": "1"}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "supplier_not_found")
