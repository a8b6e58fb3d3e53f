"""Tests for semi-monthly pay period arithmetic."""

from datetime import date, datetime, time

import pytest

from portal_payroll.calculators.periods import (
    InvalidPayDateError,
    current_period,
    next_period,
    period_for_pay_date,
    period_for_work_date,
    period_to_document,
    previous_period,
)


class TestPeriodForWorkDate:
    """Work dates map onto the 15th / 1st pay dates."""

    @pytest.mark.parametrize("day", [1, 7, 14, 15])
    def test_first_half_paid_on_fifteenth(self, day):
        period = period_for_work_date(date(2026, 3, day))

        assert period.pay_date == date(2026, 3, 15)
        assert period.work_period_start == date(2026, 3, 1)
        assert period.work_period_end == date(2026, 3, 15)
        assert period.period_id == "2026-03-15"

    @pytest.mark.parametrize("day", [16, 20, 31])
    def test_second_half_paid_on_first_of_next_month(self, day):
        period = period_for_work_date(date(2026, 3, day))

        assert period.pay_date == date(2026, 4, 1)
        assert period.work_period_start == date(2026, 3, 16)
        assert period.work_period_end == date(2026, 3, 31)

    def test_december_rolls_into_next_year(self):
        period = period_for_work_date(date(2025, 12, 20))

        assert period.pay_date == date(2026, 1, 1)
        assert period.period_id == "2026-01-01"

    def test_february_leap_year_end(self):
        period = period_for_work_date(date(2024, 2, 16))

        assert period.work_period_end == date(2024, 2, 29)
        assert period.pay_date == date(2024, 3, 1)

    def test_accepts_datetime(self):
        period = period_for_work_date(datetime(2026, 3, 15, 23, 59))

        assert period.pay_date == date(2026, 3, 15)

    def test_contains(self):
        period = period_for_work_date(date(2026, 3, 20))

        assert period.contains(date(2026, 3, 16))
        assert period.contains(datetime(2026, 3, 31, 18, 0))
        assert not period.contains(date(2026, 4, 1))


class TestPeriodForPayDate:
    """Pay dates map back to their work periods."""

    def test_fifteenth(self):
        period = period_for_pay_date(date(2026, 5, 15))

        assert period.work_period_start == date(2026, 5, 1)
        assert period.work_period_end == date(2026, 5, 15)

    def test_first_covers_previous_month_second_half(self):
        period = period_for_pay_date(date(2026, 3, 1))

        assert period.work_period_start == date(2026, 2, 16)
        assert period.work_period_end == date(2026, 2, 28)

    def test_first_of_january(self):
        period = period_for_pay_date(date(2026, 1, 1))

        assert period.work_period_start == date(2025, 12, 16)
        assert period.work_period_end == date(2025, 12, 31)

    def test_first_of_march_in_leap_year_ends_on_twenty_ninth(self):
        period = period_for_pay_date(date(2028, 3, 1))

        assert period.work_period_start == date(2028, 2, 16)
        assert period.work_period_end == date(2028, 2, 29)

    @pytest.mark.parametrize("day", [2, 10, 14, 16, 31])
    def test_rejects_other_days(self, day):
        pay_date = date(2026, 1, day)

        with pytest.raises(InvalidPayDateError) as exc_info:
            period_for_pay_date(pay_date)

        assert exc_info.value.pay_date == pay_date

    def test_invalid_pay_date_is_value_error(self):
        with pytest.raises(ValueError):
            period_for_pay_date(date(2026, 1, 10))

    def test_left_inverse_of_work_date_mapping(self):
        pay_dates = [date(2026, m, d) for m in range(1, 13) for d in (1, 15)]

        for pay_date in pay_dates:
            period = period_for_pay_date(pay_date)
            assert period_for_work_date(period.work_period_start).pay_date == pay_date
            assert period_for_work_date(period.work_period_end).pay_date == pay_date


class TestPeriodNavigation:
    """Stepping between adjacent periods."""

    def test_previous_of_first_is_prior_fifteenth(self):
        period = period_for_pay_date(date(2026, 1, 1))

        assert previous_period(period).pay_date == date(2025, 12, 15)

    def test_previous_of_fifteenth_is_same_month_first(self):
        period = period_for_pay_date(date(2026, 1, 15))

        assert previous_period(period).pay_date == date(2026, 1, 1)

    def test_next_of_fifteenth_is_next_month_first(self):
        period = period_for_pay_date(date(2025, 12, 15))

        assert next_period(period).pay_date == date(2026, 1, 1)

    def test_next_and_previous_are_inverse(self):
        period = period_for_work_date(date(2026, 7, 4))

        assert previous_period(next_period(period)) == period

    def test_walk_across_leap_february(self):
        period = period_for_pay_date(date(2028, 2, 15))

        following = next_period(period)
        assert following.pay_date == date(2028, 3, 1)
        assert following.work_period_end == date(2028, 2, 29)
        assert previous_period(following) == period

    def test_current_period_with_reference(self):
        assert current_period(date(2026, 3, 3)).period_id == "2026-03-15"

    def test_current_period_defaults_to_today(self):
        assert current_period().contains(date.today())


class TestPeriodDocument:
    def test_document_shape(self):
        period = period_for_pay_date(date(2026, 2, 1))
        created_at = datetime(2026, 1, 20, 9, 0)

        doc = period_to_document(period, created_at)

        assert doc["id"] == "2026-02-01"
        assert doc["periodStart"] == datetime(2026, 1, 16)
        assert doc["periodEnd"] == datetime.combine(date(2026, 1, 31), time.max)
        assert doc["payDate"] == datetime(2026, 2, 1)
        assert doc["status"] == "open"
        assert doc["totals"]["gross"] == 0
        assert doc["createdAt"] == created_at
