"""Billing agreement payment dates.

Monthly agreements pay on a configured day of every month; quarterly
agreements pay on a configured (month, day). A configured day past the
end of a month is clamped to the month's last day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from portal_payroll.models.agreements import PaymentScheduleDetails

MONTHLY = "monthly"
QUARTERLY = "quarterly"
FREQUENCIES = frozenset({MONTHLY, QUARTERLY})


@dataclass(frozen=True)
class ScheduledPayment:
    """A payment date and amount produced by a schedule."""

    date: date
    amount: Decimal
    frequency: str


def _pay_day(day: int) -> relativedelta:
    """Anchor on ``day``; relativedelta clamps it to the month's last day."""
    return relativedelta(day=max(day, 1))


def projection_limit(today: date, horizon_days: int, contract_end: date | None) -> date:
    """Last date a payment may fall on: the earlier of contract end and the horizon."""
    limit = today + timedelta(days=horizon_days)
    if contract_end is not None and contract_end < limit:
        return contract_end
    return limit


def _monthly_day(schedule: PaymentScheduleDetails) -> int:
    return schedule.monthly_payment_day or 1


def _quarterly_anchor(schedule: PaymentScheduleDetails) -> tuple[int, int]:
    month = schedule.quarterly_month or 1
    if not 1 <= month <= 12:
        month = 1
    return month, schedule.quarterly_day or 1


def next_payment(
    frequency: str | None,
    schedule: PaymentScheduleDetails,
    amount: Decimal,
    today: date,
    horizon_days: int,
    contract_end: date | None = None,
) -> ScheduledPayment | None:
    """Single next payment occurrence on or after ``today``.

    Monthly: this month's pay day, or next month's if it already passed.
    Quarterly: the configured (month, day) this year, or next year's if it
    already passed. Returns None when the candidate falls after the
    projection limit or the frequency is unknown.
    """
    if frequency == MONTHLY:
        day = _monthly_day(schedule)
        candidate = today + _pay_day(day)
        if candidate < today:
            candidate = today.replace(day=1) + relativedelta(months=1) + _pay_day(day)
    elif frequency == QUARTERLY:
        month, day = _quarterly_anchor(schedule)
        candidate = date(today.year, month, 1) + _pay_day(day)
        if candidate < today:
            candidate = date(today.year + 1, month, 1) + _pay_day(day)
    else:
        return None

    if candidate > projection_limit(today, horizon_days, contract_end):
        return None
    return ScheduledPayment(date=candidate, amount=amount, frequency=frequency)


def payment_series(
    frequency: str | None,
    schedule: PaymentScheduleDetails,
    amount: Decimal,
    today: date,
    horizon_days: int,
    contract_end: date | None = None,
) -> list[ScheduledPayment]:
    """Every payment occurrence from ``today`` through the projection limit.

    Monthly agreements recur every month; quarterly agreements recur every
    three months starting from the configured month.
    """
    limit = projection_limit(today, horizon_days, contract_end)

    if frequency == MONTHLY:
        day = _monthly_day(schedule)
        step = 1
        first_month = today.replace(day=1)
    elif frequency == QUARTERLY:
        anchor_month, day = _quarterly_anchor(schedule)
        step = 3
        # earliest quarter month in the calendar year
        first_month = date(today.year, (anchor_month - 1) % 3 + 1, 1)
    else:
        return []

    payments: list[ScheduledPayment] = []
    # stepping from the first month each time keeps clamped days from drifting
    steps = 0
    candidate = first_month + _pay_day(day)
    while candidate <= limit:
        if candidate >= today:
            payments.append(ScheduledPayment(date=candidate, amount=amount, frequency=frequency))
        steps += step
        candidate = first_month + relativedelta(months=steps) + _pay_day(day)
    return payments
