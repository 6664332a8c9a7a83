# ledger/services/day_service.py

"""
CASH DRAWER DAY (OPEN / CLOSE)

Open:
- no other day may be open, and the date may not have been opened before
- expected opening cash = counted cash of the last closed day (0 for the first)
- variance = counted - expected

Close (the open day, unless a date is given):
- expected closing cash = opening count + cash-account inflows - outflows
  whose business date is the day
- day totals (sales by method, expenses, cash in / out) are snapshotted
- variance = counted - expected

Both:
- a variance beyond the tolerance needs a note, otherwise the operation
  is rejected
- tolerance = max(CASH_VARIANCE_MIN_TOLERANCE, expected x CASH_VARIANCE_TOLERANCE_RATE)
- every non-zero variance is appended to CashVarianceLog

Counts are compared with the ledger, never written into it: a variance
does not move any account balance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from accounting.models import Account, CashVarianceLog, DailyOperation, Expense, Transaction
from ledger.events import PAYMENT_CARD, PAYMENT_CASH, DayCloseEvent, DayOpenEvent
from ledger.models import LedgerOperation
from ledger.services.coordinator import run_ledger_operation
from ledger.services.costing import ZERO, money, to_decimal
from ledger.services.exceptions import InvalidOperationError
from ledger.services.locking import versioned_write
from sales.models import Sale

logger = logging.getLogger("ledger")


@dataclass(frozen=True)
class DayResult:
    operation_id: str
    day: DailyOperation
    variance: CashVarianceLog | None


# ------------------------------------------------------------
# Tolerance / variance
# ------------------------------------------------------------


def variance_tolerance(expected: Decimal) -> Decimal:
    floor = money(to_decimal(getattr(settings, "CASH_VARIANCE_MIN_TOLERANCE", "500.00")))
    rate = to_decimal(getattr(settings, "CASH_VARIANCE_TOLERANCE_RATE", "0.005"))
    return max(floor, money(abs(expected) * rate))


def _check_variance(*, expected: Decimal, actual: Decimal, note: str, stage: str) -> tuple[Decimal, bool]:
    difference = actual - expected
    tolerance = variance_tolerance(expected)
    within = abs(difference) <= tolerance
    if not within and not note:
        raise InvalidOperationError(
            f"{stage.capitalize()} cash is off by {difference}; a note is required above {tolerance}",
            expected=expected,
            actual=actual,
            difference=difference,
            tolerance=tolerance,
        )
    return difference, within


def _log_variance(unit, *, day, variance_type, expected, actual, difference, within, note):
    if difference == ZERO:
        return None

    percentage = None
    if expected != ZERO:
        percentage = money(difference / expected * Decimal("100"))

    log = CashVarianceLog.objects.create(
        day=day,
        variance_date=day.operation_date,
        variance_type=variance_type,
        expected_amount=expected,
        actual_amount=actual,
        difference=difference,
        variance_percentage=percentage,
        within_tolerance=within,
        explanation=note,
        operation=unit.operation,
    )
    (logger.info if within else logger.warning)(
        "Cash variance recorded",
        extra={
            "operation_date": day.operation_date.isoformat(),
            "variance_type": variance_type,
            "expected": str(expected),
            "actual": str(actual),
            "difference": str(difference),
        },
    )
    return log


# ------------------------------------------------------------
# Day totals (read-only)
# ------------------------------------------------------------


def _sum(qs, field: str = "amount") -> Decimal:
    return money(qs.aggregate(s=Sum(field))["s"] or 0)


def day_totals(operation_date: date) -> dict:
    """Sales, expenses and cash-account movement whose business date is `operation_date`."""
    cash_accounts = Account.objects.filter(account_type=Account.TYPE_CASH)
    txns = Transaction.objects.filter(transaction_date=operation_date)
    sales = Sale.objects.filter(sale_date=operation_date)

    return {
        "total_sales": _sum(sales, "sale_amount"),
        "cash_sales": _sum(sales.filter(payment_method=PAYMENT_CASH), "sale_amount"),
        "card_sales": _sum(sales.filter(payment_method=PAYMENT_CARD), "sale_amount"),
        "total_expenses": _sum(Expense.objects.filter(expense_date=operation_date)),
        "cash_in": _sum(txns.filter(to_account__in=cash_accounts)),
        "cash_out": _sum(txns.filter(from_account__in=cash_accounts)),
    }


def expected_opening_cash() -> Decimal:
    last_closed = (
        DailyOperation.objects.filter(status=DailyOperation.STATUS_CLOSED)
        .order_by("-operation_date")
        .first()
    )
    if last_closed is None or last_closed.closing_cash_actual is None:
        return Decimal("0.00")
    return money(last_closed.closing_cash_actual)


def day_summary(day: DailyOperation) -> dict:
    """What closing the day right now would expect to find in the drawer."""
    totals = day_totals(day.operation_date)
    expected = money(day.opening_cash_actual) + totals["cash_in"] - totals["cash_out"]
    return {
        "operation_date": day.operation_date,
        "status": day.status,
        "opening_cash_actual": money(day.opening_cash_actual),
        "closing_cash_expected": expected,
        "tolerance": variance_tolerance(expected),
        **totals,
    }


def current_day() -> DailyOperation | None:
    return DailyOperation.objects.filter(status=DailyOperation.STATUS_OPEN).first()


# ------------------------------------------------------------
# Operations
# ------------------------------------------------------------


def _apply_open(unit, event: DayOpenEvent) -> DayResult:
    operation_date = event.operation_date or timezone.localdate()

    already_open = current_day()
    if already_open is not None:
        raise InvalidOperationError(
            "Another day is still open; close it first",
            open_date=already_open.operation_date,
        )
    if DailyOperation.objects.filter(operation_date=operation_date).exists():
        raise InvalidOperationError("This day was already opened", operation_date=operation_date)

    expected = expected_opening_cash()
    actual = event.counted_cash
    difference, within = _check_variance(expected=expected, actual=actual, note=event.note, stage="opening")

    try:
        with transaction.atomic():
            day = DailyOperation.objects.create(
                operation_date=operation_date,
                status=DailyOperation.STATUS_OPEN,
                opening_cash_expected=expected,
                opening_cash_actual=actual,
                opening_cash_variance=difference,
                opening_note=event.note,
                open_operation=unit.operation,
            )
    except IntegrityError as exc:
        raise InvalidOperationError(
            "A day was opened concurrently", operation_date=operation_date
        ) from exc

    variance = _log_variance(
        unit,
        day=day,
        variance_type=CashVarianceLog.TYPE_OPENING,
        expected=expected,
        actual=actual,
        difference=difference,
        within=within,
        note=event.note,
    )
    unit.touch("day", day.operation_date)

    logger.info(
        "Day opened",
        extra={"operation_date": operation_date.isoformat(), "opening_cash": str(actual)},
    )
    return DayResult(operation_id=str(unit.operation.pk), day=day, variance=variance)


def _apply_close(unit, event: DayCloseEvent) -> DayResult:
    days = DailyOperation.objects.select_for_update()
    if event.operation_date is not None:
        day = days.filter(operation_date=event.operation_date).first()
    else:
        day = days.filter(status=DailyOperation.STATUS_OPEN).first()

    if day is None:
        raise InvalidOperationError("No open day to close", operation_date=event.operation_date)
    if not day.is_open:
        raise InvalidOperationError("This day is already closed", operation_date=day.operation_date)

    summary = day_summary(day)
    expected = summary["closing_cash_expected"]
    actual = event.counted_cash
    difference, within = _check_variance(expected=expected, actual=actual, note=event.note, stage="closing")

    versioned_write(
        day,
        status=DailyOperation.STATUS_CLOSED,
        closing_cash_expected=expected,
        closing_cash_actual=actual,
        closing_cash_variance=difference,
        closing_note=event.note,
        total_sales=summary["total_sales"],
        cash_sales=summary["cash_sales"],
        card_sales=summary["card_sales"],
        total_expenses=summary["total_expenses"],
        cash_in=summary["cash_in"],
        cash_out=summary["cash_out"],
        closed_at=timezone.now(),
        close_operation=unit.operation,
    )

    variance = _log_variance(
        unit,
        day=day,
        variance_type=CashVarianceLog.TYPE_CLOSING,
        expected=expected,
        actual=actual,
        difference=difference,
        within=within,
        note=event.note,
    )
    unit.touch("day", day.operation_date)

    logger.info(
        "Day closed",
        extra={
            "operation_date": day.operation_date.isoformat(),
            "expected_cash": str(expected),
            "closing_cash": str(actual),
            "total_sales": str(summary["total_sales"]),
        },
    )
    return DayResult(operation_id=str(unit.operation.pk), day=day, variance=variance)


def open_day(*, counted_cash, operation_date=None, note: str = "", idempotency_key: str | None = None) -> DayResult:
    return run_ledger_operation(
        LedgerOperation.KIND_DAY_OPEN,
        lambda: DayOpenEvent.build(
            counted_cash=counted_cash,
            operation_date=operation_date,
            note=note,
            idempotency_key=idempotency_key,
        ),
        _apply_open,
    )


def close_day(*, counted_cash, operation_date=None, note: str = "", idempotency_key: str | None = None) -> DayResult:
    return run_ledger_operation(
        LedgerOperation.KIND_DAY_CLOSE,
        lambda: DayCloseEvent.build(
            counted_cash=counted_cash,
            operation_date=operation_date,
            note=note,
            idempotency_key=idempotency_key,
        ),
        _apply_close,
    )
