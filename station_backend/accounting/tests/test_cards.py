# accounting/tests/test_cards.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account, CardPayment, CardType, Expense, Transaction
from ledger.models import LedgerOperation
from ledger.services.card_service import CARD_TAX_CATEGORY, record_card_settlement
from ledger.services.exceptions import (
    CardPaymentNotFoundError,
    DuplicateOperationError,
    InvalidOperationError,
)
from ledger.services.sale_service import record_sale
from ledger.tests.helpers import make_account, make_user, stocked_product
from reports.services.aggregator import build_period_report, reconcile_ledger


def card_sale(product, card_type, *, quantity="10", price="200"):
    return record_sale(
        product_id=product.pk,
        quantity=quantity,
        selling_price=price,
        payment_method="card",
        card_type_id=card_type.pk,
    )


# ============================================================
# Settlement
# ============================================================


class CardSettlementTests(TestCase):
    """
    GUARANTEES:
    - Settlement credits the NET amount to a bank account, once
    - The withheld tax is an expense that debits no account
    - The held payment becomes `received` in the same unit
    - Balances still reconcile with the transaction log
    """

    def setUp(self):
        self.cash = make_account("Cash Drawer", Account.TYPE_CASH)
        self.bank = make_account("Main Bank", Account.TYPE_BANK, "1000.00")
        self.petrol = stocked_product("500", "150.00", name="Petrol 92")
        self.visa = CardType.objects.create(card_name="Visa", tax_percentage=Decimal("2.00"))
        self.payment = card_sale(self.petrol, self.visa).card_payment

    def test_settlement_credits_net_and_books_tax(self):
        result = record_card_settlement(card_payment_id=self.payment.pk, settlement_date=date(2024, 3, 2))

        self.bank.refresh_from_db()
        self.assertEqual(self.bank.current_balance, Decimal("2960.00"))

        txn = result.transaction
        self.assertEqual(txn.transaction_type, Transaction.TYPE_CARD_SETTLEMENT)
        self.assertEqual(txn.amount, Decimal("1960.00"))
        self.assertEqual(txn.to_account_id, self.bank.pk)
        self.assertEqual(txn.reference_type, "card_payment")
        self.assertEqual(txn.reference_id, str(self.payment.pk))
        self.assertEqual(txn.transaction_date, date(2024, 3, 2))

        tax = result.tax_expense
        self.assertEqual(tax.category, CARD_TAX_CATEGORY)
        self.assertEqual(tax.amount, Decimal("40.00"))
        self.assertIsNone(tax.account)
        self.assertIsNone(tax.transaction)

        payment = CardPayment.objects.get(pk=self.payment.pk)
        self.assertEqual(payment.status, CardPayment.STATUS_RECEIVED)
        self.assertEqual(payment.account_id, self.bank.pk)
        self.assertEqual(payment.received_date, date(2024, 3, 2))
        self.assertEqual(payment.settlement_transaction_id, txn.pk)
        self.assertEqual(payment.tax_expense_id, tax.pk)
        self.assertEqual(payment.version, 1)

        self.assertEqual(reconcile_ledger(), [])

    def test_profit_sees_the_tax_once(self):
        record_card_settlement(card_payment_id=self.payment.pk)

        report = build_period_report()
        totals = report["totals"]
        self.assertEqual(totals["sales"], Decimal("2000.00"))
        self.assertEqual(totals["expenses"], Decimal("40.00"))
        self.assertEqual(totals["net_profit"], Decimal("460.00"))
        self.assertEqual(report["cards"]["on_hold"], Decimal("0.00"))

        bank = next(a for a in report["accounts"] if a["name"] == "Main Bank")
        self.assertEqual(bank["inflow"], Decimal("1960.00"))
        self.assertEqual(bank["outflow"], Decimal("0.00"))

    def test_held_payments_show_in_report(self):
        cards = build_period_report()["cards"]

        self.assertEqual(cards["sales"], Decimal("2000.00"))
        self.assertEqual(cards["on_hold"], Decimal("2000.00"))

    def test_second_settlement_is_rejected(self):
        record_card_settlement(card_payment_id=self.payment.pk)

        with self.assertRaises(InvalidOperationError):
            record_card_settlement(card_payment_id=self.payment.pk)

        self.bank.refresh_from_db()
        self.assertEqual(self.bank.current_balance, Decimal("2960.00"))
        self.assertEqual(Expense.objects.filter(category=CARD_TAX_CATEGORY).count(), 1)

    def test_settlement_into_cash_account_is_rejected(self):
        with self.assertRaises(InvalidOperationError):
            record_card_settlement(card_payment_id=self.payment.pk, account_id=self.cash.pk)

        payment = CardPayment.objects.get(pk=self.payment.pk)
        self.assertEqual(payment.status, CardPayment.STATUS_HOLD)
        self.assertFalse(LedgerOperation.objects.filter(kind=LedgerOperation.KIND_CARD_SETTLEMENT).exists())

    def test_unknown_payment(self):
        with self.assertRaises(CardPaymentNotFoundError):
            record_card_settlement(card_payment_id="3f1d7a4e-0000-4000-8000-000000000000")

    def test_idempotency_key_is_single_use(self):
        record_card_settlement(card_payment_id=self.payment.pk, idempotency_key="settle-1")

        other = card_sale(self.petrol, self.visa, quantity="1").card_payment
        with self.assertRaises(DuplicateOperationError):
            record_card_settlement(card_payment_id=other.pk, idempotency_key="settle-1")

    def test_zero_tax_card_settles_gross(self):
        master = CardType.objects.create(card_name="Master", tax_percentage=Decimal("0"))
        payment = card_sale(self.petrol, master, quantity="1").card_payment

        result = record_card_settlement(card_payment_id=payment.pk)

        self.assertIsNone(result.tax_expense)
        self.assertEqual(result.transaction.amount, Decimal("200.00"))

    def test_card_payments_are_immutable(self):
        payment = CardPayment.objects.get(pk=self.payment.pk)
        payment.notes = "edited"

        with self.assertRaises(ValidationError):
            payment.save()
        with self.assertRaises(ValidationError):
            payment.delete()


# ============================================================
# HTTP
# ============================================================


class CardApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())
        self.bank = make_account("Main Bank", Account.TYPE_BANK)
        self.petrol = stocked_product("100", "150.00", name="Petrol 92")

    def test_card_type_crud_without_delete(self):
        created = self.client.post(
            "/api/accounting/card-types/",
            {"card_name": "Amex", "tax_percentage": "3.50"},
            format="json",
        )
        self.assertEqual(created.status_code, 201)

        bad = self.client.post(
            "/api/accounting/card-types/",
            {"card_name": "Broken", "tax_percentage": "120"},
            format="json",
        )
        self.assertEqual(bad.status_code, 400)

        url = f"/api/accounting/card-types/{created.data['id']}/"
        self.assertEqual(self.client.patch(url, {"is_active": False}, format="json").status_code, 200)
        self.assertEqual(self.client.delete(url).status_code, 405)

    def test_list_and_settle(self):
        visa = CardType.objects.create(card_name="Visa", tax_percentage=Decimal("1.00"))
        payment = card_sale(self.petrol, visa).card_payment

        held = self.client.get("/api/accounting/card-payments/", {"status": "hold"})
        self.assertEqual(held.status_code, 200)
        self.assertEqual(held.data["count"], 1)
        self.assertEqual(held.data["results"][0]["net_amount"], "1980.00")

        settled = self.client.post(f"/api/accounting/card-payments/{payment.pk}/settle/", {}, format="json")
        self.assertEqual(settled.status_code, 201)
        self.assertEqual(settled.data["status"], "received")
        self.assertEqual(settled.data["account_name"], "Main Bank")
        self.assertIn("operation_id", settled.data)

        again = self.client.post(f"/api/accounting/card-payments/{payment.pk}/settle/", {}, format="json")
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.data["code"], "invalid_operation")
