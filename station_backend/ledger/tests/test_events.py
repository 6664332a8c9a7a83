# ledger/tests/test_events.py

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from ledger.events import (
    EVENT_TYPES,
    AdjustmentEvent,
    CardSettlementEvent,
    DayCloseEvent,
    DayOpenEvent,
    ExpenseEvent,
    NozzleSaleEvent,
    PurchaseEvent,
    SaleEvent,
    TransferEvent,
)
from ledger.services.exceptions import InvalidOperationError, InvalidQuantityError


class EventValidationTests(SimpleTestCase):
    """Every event is normalized and validated before any row is touched."""

    def test_purchase_totals_and_due(self):
        event = PurchaseEvent.build(
            supplier_id="s-1",
            lines=[
                {"product_id": "p-1", "quantity": "1000", "unit_price": "100"},
                {"product_id": "p-2", "quantity": "10.5", "unit_price": "4.20"},
            ],
            paid_amount="50000",
            payment_method="Bank_Transfer",
        )

        self.assertEqual(event.total_amount, Decimal("100044.10"))
        self.assertEqual(event.due_amount, Decimal("50044.10"))
        self.assertEqual(event.payment_method, "bank")
        self.assertIsNone(event.idempotency_key)

    def test_purchase_rejects_bad_lines(self):
        cases = {
            "empty": [],
            "duplicate product": [
                {"product_id": "p-1", "quantity": "1", "unit_price": "1"},
                {"product_id": "p-1", "quantity": "2", "unit_price": "1"},
            ],
            "zero quantity": [{"product_id": "p-1", "quantity": "0", "unit_price": "1"}],
            "missing product": [{"quantity": "1", "unit_price": "1"}],
        }
        for label, lines in cases.items():
            with self.subTest(label), self.assertRaises((InvalidOperationError, InvalidQuantityError)):
                PurchaseEvent.build(supplier_id="s-1", lines=lines)

    def test_purchase_overpayment_is_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            PurchaseEvent.build(
                supplier_id="s-1",
                lines=[{"product_id": "p-1", "quantity": "1", "unit_price": "10"}],
                paid_amount="10.01",
            )

    def test_sale_requires_positive_quantity_and_known_method(self):
        with self.assertRaises(InvalidQuantityError):
            SaleEvent.build(product_id="p-1", quantity="-1", selling_price="10")
        with self.assertRaises(InvalidOperationError):
            SaleEvent.build(product_id="p-1", quantity="1", selling_price="10", payment_method="barter")

        event = SaleEvent.build(product_id="p-1", quantity="200", selling_price="120", idempotency_key="  k1 ")
        self.assertEqual(event.sale_amount, Decimal("24000.00"))
        self.assertEqual(event.idempotency_key, "k1")

    def test_adjustment_requires_reason_and_non_zero_delta(self):
        with self.assertRaises(InvalidOperationError):
            AdjustmentEvent.build(product_id="p-1", quantity_delta="-5", reason="   ")
        with self.assertRaises(InvalidQuantityError):
            AdjustmentEvent.build(product_id="p-1", quantity_delta="0", reason="count")

    def test_nozzle_reading_price_is_optional(self):
        event = NozzleSaleEvent.build(nozzle_id="1", closing_reading="1520.5", reading_date=date(2024, 1, 2))
        self.assertIsNone(event.selling_price)
        self.assertEqual(event.closing_reading, Decimal("1520.500"))

        with self.assertRaises(InvalidQuantityError):
            NozzleSaleEvent.build(nozzle_id="1", closing_reading="-1")

    def test_expense_needs_category_and_positive_amount(self):
        with self.assertRaises(InvalidOperationError):
            ExpenseEvent.build(amount="10", category="")
        with self.assertRaises(InvalidQuantityError):
            ExpenseEvent.build(amount="0", category="Electricity")

    def test_transfer_needs_exactly_one_destination(self):
        with self.assertRaises(InvalidOperationError):
            TransferEvent.build(from_account_id="1", amount="10")
        with self.assertRaises(InvalidOperationError):
            TransferEvent.build(from_account_id="1", amount="10", to_account_id="2", to_supplier_id="s")
        with self.assertRaises(InvalidOperationError):
            TransferEvent.build(from_account_id="1", amount="10", to_account_id="1")

        event = TransferEvent.build(from_account_id="1", amount="500", to_supplier_id="s")
        self.assertTrue(event.is_supplier_payment)

    def test_payload_is_json_safe(self):
        event = ExpenseEvent.build(amount="12.5", category="Water", expense_date=date(2024, 3, 1))
        payload = event.to_payload()

        self.assertEqual(payload["kind"], "expense")
        self.assertEqual(payload["amount"], "12.50")
        self.assertEqual(payload["expense_date"], "2024-03-01")
        self.assertEqual(set(EVENT_TYPES), {
            "purchase", "sale", "nozzle_sale", "adjustment", "initial_stock", "expense", "transfer",
            "card_settlement", "day_open", "day_close",
        })

    def test_card_sale_names_a_card_type_and_no_account(self):
        event = SaleEvent.build(
            product_id="p-1", quantity="2", selling_price="120", payment_method="Card", card_type_id="7"
        )
        self.assertEqual(event.payment_method, "card")
        self.assertEqual(event.card_type_id, "7")

        with self.assertRaises(InvalidOperationError):
            SaleEvent.build(product_id="p-1", quantity="1", selling_price="10", payment_method="card")
        with self.assertRaises(InvalidOperationError):
            SaleEvent.build(
                product_id="p-1", quantity="1", selling_price="10",
                payment_method="card", card_type_id="7", account_id="a-1",
            )
        with self.assertRaises(InvalidOperationError):
            SaleEvent.build(product_id="p-1", quantity="1", selling_price="10", card_type_id="7")

    def test_card_is_not_an_expense_method(self):
        with self.assertRaises(InvalidOperationError):
            ExpenseEvent.build(amount="10", category="Water", payment_method="card")

    def test_day_events(self):
        event = DayCloseEvent.build(counted_cash="1500", note=" short by 20 ")
        self.assertEqual(event.kind, "day_close")
        self.assertEqual(event.counted_cash, Decimal("1500.00"))
        self.assertEqual(event.note, "short by 20")
        self.assertIsNone(event.operation_date)

        with self.assertRaises(InvalidQuantityError):
            DayOpenEvent.build(counted_cash="-1")
        with self.assertRaises(InvalidOperationError):
            DayOpenEvent.build(counted_cash="0", operation_date="2024-01-01")

    def test_card_settlement_event(self):
        event = CardSettlementEvent.build(card_payment_id=" cp-1 ", settlement_date=date(2024, 3, 2))
        self.assertEqual(event.card_payment_id, "cp-1")
        self.assertEqual(event.to_payload()["settlement_date"], "2024-03-02")

        with self.assertRaises(InvalidOperationError):
            CardSettlementEvent.build(card_payment_id="")
