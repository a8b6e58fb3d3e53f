"""Semi-monthly pay period arithmetic.

Pay dates fall on the 1st and the 15th:

- work days 1-15 are paid on the 15th of the same month;
- work days 16-end of month are paid on the 1st of the following month.

Every function here is pure and operates on calendar fields only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from dateutil.relativedelta import relativedelta


class InvalidPayDateError(ValueError):
    """Raised when a pay date is not the 1st or the 15th of a month."""

    def __init__(self, pay_date: date):
        self.pay_date = pay_date
        super().__init__(
            f"Invalid pay date: {pay_date.isoformat()}. "
            "Semi-monthly pay dates must be the 1st or 15th of the month."
        )


@dataclass(frozen=True)
class SemiMonthlyPeriod:
    """A semi-monthly work period and the date it is paid."""

    period_id: str
    work_period_start: date
    work_period_end: date
    pay_date: date

    def contains(self, work_date: date | datetime) -> bool:
        day = _as_date(work_date)
        return self.work_period_start <= day <= self.work_period_end


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


# relativedelta(day=31) clamps to the last day of whatever month it lands in
MONTH_END = relativedelta(day=31)


def period_id(pay_date: date | datetime | str) -> str:
    """Period identifier derived from the pay date (ISO ``YYYY-MM-DD``)."""
    if isinstance(pay_date, str):
        return pay_date
    return _as_date(pay_date).isoformat()


def period_for_work_date(work_date: date | datetime) -> SemiMonthlyPeriod:
    """Return the period a work date belongs to."""
    day = _as_date(work_date)

    if day.day <= 15:
        pay_date = date(day.year, day.month, 15)
        return SemiMonthlyPeriod(
            period_id=period_id(pay_date),
            work_period_start=date(day.year, day.month, 1),
            work_period_end=pay_date,
            pay_date=pay_date,
        )

    pay_date = day.replace(day=1) + relativedelta(months=1)
    return SemiMonthlyPeriod(
        period_id=period_id(pay_date),
        work_period_start=date(day.year, day.month, 16),
        work_period_end=day + MONTH_END,
        pay_date=pay_date,
    )


def period_for_pay_date(pay_date: date | datetime) -> SemiMonthlyPeriod:
    """Return the period paid on ``pay_date``.

    Raises:
        InvalidPayDateError: If the date is not the 1st or 15th.
    """
    day = _as_date(pay_date)

    if day.day == 15:
        return SemiMonthlyPeriod(
            period_id=period_id(day),
            work_period_start=date(day.year, day.month, 1),
            work_period_end=day,
            pay_date=day,
        )

    if day.day == 1:
        previous_month = day - relativedelta(months=1)
        return SemiMonthlyPeriod(
            period_id=period_id(day),
            work_period_start=previous_month.replace(day=16),
            work_period_end=previous_month + MONTH_END,
            pay_date=day,
        )

    raise InvalidPayDateError(day)


def current_period(reference: date | datetime | None = None) -> SemiMonthlyPeriod:
    """Period containing ``reference`` (today when omitted)."""
    return period_for_work_date(reference if reference is not None else date.today())


def previous_period(period: SemiMonthlyPeriod) -> SemiMonthlyPeriod:
    pay = period.pay_date
    if pay.day == 15:
        return period_for_pay_date(pay.replace(day=1))
    return period_for_pay_date(pay - relativedelta(months=1, day=15))


def next_period(period: SemiMonthlyPeriod) -> SemiMonthlyPeriod:
    pay = period.pay_date
    if pay.day == 15:
        return period_for_pay_date(pay + relativedelta(months=1, day=1))
    return period_for_pay_date(pay.replace(day=15))


def period_to_document(period: SemiMonthlyPeriod, created_at: Any) -> dict[str, Any]:
    """Build the ``payrollPeriods`` document for a period."""
    return {
        "id": period.period_id,
        "periodStart": datetime.combine(period.work_period_start, time.min),
        "periodEnd": datetime.combine(period.work_period_end, time.max),
        "payDate": datetime.combine(period.pay_date, time.min),
        "status": "open",
        "totals": {"gross": Decimal("0"), "deductions": Decimal("0"), "net": Decimal("0")},
        "createdAt": created_at,
    }
