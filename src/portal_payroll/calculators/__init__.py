"""Payroll and billing calculators."""

from portal_payroll.calculators.earnings import earnings_by_employee, timesheet_earnings
from portal_payroll.calculators.job_matcher import (
    AssignmentSelector,
    FirstArrivalSelector,
    JobAssignment,
    JobMatcher,
    expand_assignments,
)
from portal_payroll.calculators.periods import (
    InvalidPayDateError,
    SemiMonthlyPeriod,
    current_period,
    next_period,
    period_for_pay_date,
    period_for_work_date,
    previous_period,
)
from portal_payroll.calculators.rate_resolver import RateResolver

__all__ = [
    "AssignmentSelector",
    "FirstArrivalSelector",
    "InvalidPayDateError",
    "JobAssignment",
    "JobMatcher",
    "RateResolver",
    "SemiMonthlyPeriod",
    "current_period",
    "earnings_by_employee",
    "expand_assignments",
    "next_period",
    "period_for_pay_date",
    "period_for_work_date",
    "previous_period",
    "timesheet_earnings",
]
