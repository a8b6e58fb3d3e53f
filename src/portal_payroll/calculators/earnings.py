"""Timesheet earnings from the rate captured when the timesheet was created."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from portal_payroll.models.payroll import RateType, Timesheet

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def timesheet_earnings(timesheet: Timesheet) -> Decimal:
    """Earnings for one timesheet.

    Per-visit rates pay amount x units (one visit when units are unset or
    zero), hourly rates pay amount x hours. Monthly salaries are paid on
    their own schedule, so a monthly timesheet earns nothing by itself.
    """
    rate = timesheet.rate_snapshot
    if rate.type == RateType.PER_VISIT:
        quantity = Decimal(timesheet.units or 1)
    elif rate.type == RateType.HOURLY:
        quantity = timesheet.hours or ZERO
    else:
        return ZERO
    return round_to_cents(rate.amount * quantity)


def earnings_by_employee(timesheets: Iterable[Timesheet]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for timesheet in timesheets:
        earned = timesheet_earnings(timesheet)
        totals[timesheet.employee_id] = totals.get(timesheet.employee_id, ZERO) + earned
    return totals
