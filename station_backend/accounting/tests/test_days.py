# accounting/tests/test_days.py

from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from accounting.models import Account, CardType, CashVarianceLog, DailyOperation
from ledger.models import LedgerOperation
from ledger.services.cash_service import record_expense
from ledger.services.day_service import close_day, open_day, variance_tolerance
from ledger.services.exceptions import InvalidOperationError
from ledger.services.sale_service import record_sale
from ledger.tests.helpers import make_account, make_user, stocked_product


class DayOpenTests(TestCase):
    """
    GUARANTEES:
    - One open day at a time; a date is opened at most once
    - The first day expects no cash, later days expect the last closing count
    - Non-zero variances are logged; large ones need a note
    """

    def setUp(self):
        make_account("Cash Drawer", Account.TYPE_CASH)

    def test_first_day_expects_zero(self):
        result = open_day(counted_cash="0", operation_date=date(2024, 1, 1))

        day = result.day
        self.assertTrue(day.is_open)
        self.assertEqual(day.opening_cash_expected, Decimal("0.00"))
        self.assertEqual(day.opening_cash_variance, Decimal("0.00"))
        self.assertIsNone(result.variance)
        self.assertEqual(day.open_operation.kind, LedgerOperation.KIND_DAY_OPEN)

    def test_small_variance_is_logged_without_note(self):
        result = open_day(counted_cash="300", operation_date=date(2024, 1, 1))

        log = result.variance
        self.assertEqual(log.variance_type, CashVarianceLog.TYPE_OPENING)
        self.assertEqual(log.difference, Decimal("300.00"))
        self.assertIsNone(log.variance_percentage)
        self.assertTrue(log.within_tolerance)

    def test_large_variance_needs_a_note(self):
        with self.assertRaises(InvalidOperationError):
            open_day(counted_cash="800", operation_date=date(2024, 1, 1))
        self.assertFalse(DailyOperation.objects.exists())

        result = open_day(counted_cash="800", operation_date=date(2024, 1, 1), note="Float topped up")
        self.assertFalse(result.variance.within_tolerance)
        self.assertEqual(result.variance.explanation, "Float topped up")

    def test_only_one_open_day(self):
        open_day(counted_cash="0", operation_date=date(2024, 1, 1))

        with self.assertRaises(InvalidOperationError):
            open_day(counted_cash="0", operation_date=date(2024, 1, 2))

    def test_a_date_is_opened_once(self):
        open_day(counted_cash="0", operation_date=date(2024, 1, 1))
        close_day(counted_cash="0")

        with self.assertRaises(InvalidOperationError):
            open_day(counted_cash="0", operation_date=date(2024, 1, 1))

    def test_next_day_expects_last_closing_count(self):
        open_day(counted_cash="0", operation_date=date(2024, 1, 1))
        close_day(counted_cash="400", note="Counted twice")

        day = open_day(counted_cash="400", operation_date=date(2024, 1, 2)).day
        self.assertEqual(day.opening_cash_expected, Decimal("400.00"))
        self.assertEqual(day.opening_cash_variance, Decimal("0.00"))

    def test_tolerance_floor_and_rate(self):
        self.assertEqual(variance_tolerance(Decimal("1000")), Decimal("500.00"))
        self.assertEqual(variance_tolerance(Decimal("400000")), Decimal("2000.00"))

        with override_settings(CASH_VARIANCE_MIN_TOLERANCE="0", CASH_VARIANCE_TOLERANCE_RATE="0"):
            self.assertEqual(variance_tolerance(Decimal("1000")), Decimal("0.00"))
            with self.assertRaises(InvalidOperationError):
                open_day(counted_cash="1", operation_date=date(2024, 1, 1))


class DayCloseTests(TestCase):
    """
    GUARANTEES:
    - expected closing cash = opening count + cash-account movement of the day
    - Card and bank money never counts towards the drawer
    - Day totals are snapshotted at close
    - Days change only through open / close
    """

    def setUp(self):
        self.today = timezone.localdate()
        self.cash = make_account("Cash Drawer", Account.TYPE_CASH)
        self.bank = make_account("Main Bank", Account.TYPE_BANK)
        self.petrol = stocked_product("500", "100.00", name="Petrol 92")
        self.visa = CardType.objects.create(card_name="Visa", tax_percentage=Decimal("2.00"))

        open_day(counted_cash="1000", operation_date=self.today, note="Opening float")
        record_sale(product_id=self.petrol.pk, quantity="10", selling_price="120")
        record_sale(product_id=self.petrol.pk, quantity="5", selling_price="120", payment_method="bank")
        record_sale(
            product_id=self.petrol.pk,
            quantity="2",
            selling_price="120",
            payment_method="card",
            card_type_id=self.visa.pk,
        )
        record_expense(amount="200", category="Water", payment_method="cash")

    def test_balanced_close(self):
        result = close_day(counted_cash="2000")

        day = result.day
        self.assertFalse(day.is_open)
        self.assertEqual(day.closing_cash_expected, Decimal("2000.00"))
        self.assertEqual(day.closing_cash_variance, Decimal("0.00"))
        self.assertEqual(day.total_sales, Decimal("2040.00"))
        self.assertEqual(day.cash_sales, Decimal("1200.00"))
        self.assertEqual(day.card_sales, Decimal("240.00"))
        self.assertEqual(day.total_expenses, Decimal("200.00"))
        self.assertEqual(day.cash_in, Decimal("1200.00"))
        self.assertEqual(day.cash_out, Decimal("200.00"))
        self.assertIsNotNone(day.closed_at)
        self.assertIsNone(result.variance)

        stored = DailyOperation.objects.get(pk=day.pk)
        self.assertEqual(stored.status, DailyOperation.STATUS_CLOSED)
        self.assertEqual(str(stored.close_operation_id), result.operation_id)

    def test_short_drawer_needs_a_note(self):
        with self.assertRaises(InvalidOperationError):
            close_day(counted_cash="1000")
        self.assertTrue(DailyOperation.objects.get(operation_date=self.today).is_open)

        result = close_day(counted_cash="1000", note="Till shortage reported")
        log = result.variance
        self.assertEqual(log.variance_type, CashVarianceLog.TYPE_CLOSING)
        self.assertEqual(log.expected_amount, Decimal("2000.00"))
        self.assertEqual(log.difference, Decimal("-1000.00"))
        self.assertEqual(log.variance_percentage, Decimal("-50.00"))
        self.assertFalse(log.within_tolerance)

    def test_variance_does_not_move_balances(self):
        close_day(counted_cash="1900")

        self.cash.refresh_from_db()
        self.assertEqual(self.cash.current_balance, Decimal("1000.00"))

    def test_closing_twice_or_without_open_day(self):
        close_day(counted_cash="2000")

        with self.assertRaises(InvalidOperationError):
            close_day(counted_cash="2000")
        with self.assertRaises(InvalidOperationError):
            close_day(counted_cash="2000", operation_date=self.today)

    def test_days_are_written_only_by_the_ledger(self):
        day = DailyOperation.objects.get(operation_date=self.today)
        day.opening_note = "edited"

        with self.assertRaises(ValidationError):
            day.save()
        with self.assertRaises(ValidationError):
            day.delete()


class DayApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())
        make_account("Cash Drawer", Account.TYPE_CASH)

    def test_open_current_close(self):
        self.assertEqual(self.client.get("/api/accounting/days/current/").data, {"day": None, "summary": None})

        opened = self.client.post("/api/accounting/days/open/", {"counted_cash": "250.00"}, format="json")
        self.assertEqual(opened.status_code, 201)
        self.assertEqual(opened.data["status"], "open")
        self.assertEqual(len(opened.data["variances"]), 1)

        current = self.client.get("/api/accounting/days/current/")
        self.assertEqual(current.data["summary"]["closing_cash_expected"], "250.00")

        closed = self.client.post("/api/accounting/days/close/", {"counted_cash": "250.00"}, format="json")
        self.assertEqual(closed.status_code, 201)
        self.assertEqual(closed.data["status"], "closed")

        variances = self.client.get("/api/accounting/cash-variances/")
        self.assertEqual(variances.data["count"], 1)

    def test_second_open_day_is_400(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        self.client.post(
            "/api/accounting/days/open/",
            {"counted_cash": "0", "operation_date": yesterday.isoformat()},
            format="json",
        )

        response = self.client.post("/api/accounting/days/open/", {"counted_cash": "0"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["context"]["open_date"], yesterday.isoformat())
