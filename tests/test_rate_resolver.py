"""Tests for pay rate resolver."""

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from portal_payroll.calculators.rate_resolver import RateResolver
from portal_payroll.models.payroll import RATES_COLLECTION, RateType

AT = datetime(2026, 1, 15, 8, 0)


@pytest_asyncio.fixture
async def scoped_rates(seed):
    """One location-scoped, one client-scoped and one unscoped rate for emp-1."""
    await seed(
        RATES_COLLECTION,
        {
            "rate-loc": {
                "employeeId": "emp-1",
                "rateType": "hourly",
                "amount": 30,
                "effectiveDate": datetime(2025, 1, 1),
                "locationId": "loc-1",
            },
            "rate-client": {
                "employeeId": "emp-1",
                "rateType": "hourly",
                "amount": 28,
                "effectiveDate": datetime(2025, 2, 1),
                "clientProfileId": "client-1",
            },
            "rate-base": {
                "employeeId": "emp-1",
                "rateType": "hourly",
                "amount": 25,
                "effectiveDate": datetime(2025, 3, 1),
            },
        },
    )


class TestRateResolver:
    """Test rate resolution with scope fallback."""

    @pytest.mark.asyncio
    async def test_location_rate_wins(self, store, scoped_rates):
        """Location scope beats client scope and unscoped rates."""
        resolver = RateResolver(store)

        rate = await resolver.resolve("emp-1", AT, location_id="loc-1", client_id="client-1")

        assert rate is not None
        assert rate.type == RateType.HOURLY
        assert rate.amount == Decimal("30")

    @pytest.mark.asyncio
    async def test_client_rate_when_no_location_match(self, store, scoped_rates):
        resolver = RateResolver(store)

        rate = await resolver.resolve("emp-1", AT, location_id="loc-9", client_id="client-1")

        assert rate.amount == Decimal("28")

    @pytest.mark.asyncio
    async def test_unscoped_fallback(self, store, scoped_rates):
        """Without a scoped hit the latest rate of any scope is used."""
        resolver = RateResolver(store)

        rate = await resolver.resolve("emp-1", AT, location_id="loc-9", client_id="client-9")

        assert rate.amount == Decimal("25")

    @pytest.mark.asyncio
    async def test_resolve_rate_not_found(self, store, scoped_rates):
        """A miss returns None instead of raising."""
        resolver = RateResolver(store)

        assert await resolver.resolve("emp-unknown", AT) is None

    @pytest.mark.asyncio
    async def test_resolve_rate_respects_effective_dates(self, store, seed):
        """Test that rate resolution respects effective dates."""
        await seed(
            RATES_COLLECTION,
            {
                "old": {
                    "employeeId": "emp-1",
                    "rateType": "hourly",
                    "amount": 20,
                    "effectiveDate": datetime(2025, 1, 1),
                },
                "new": {
                    "employeeId": "emp-1",
                    "rateType": "hourly",
                    "amount": 30,
                    "effectiveDate": datetime(2026, 2, 1),
                },
            },
        )
        resolver = RateResolver(store)

        before = await resolver.resolve("emp-1", datetime(2026, 1, 31, 23, 0))
        on_effective_day = await resolver.resolve("emp-1", datetime(2026, 2, 1, 8, 0))

        assert before.amount == Decimal("20")
        assert on_effective_day.amount == Decimal("30")

    @pytest.mark.asyncio
    async def test_future_rate_only_is_a_miss(self, store, seed):
        await seed(
            RATES_COLLECTION,
            {
                "future": {
                    "employeeId": "emp-1",
                    "rateType": "hourly",
                    "amount": 30,
                    "effectiveDate": datetime(2027, 1, 1),
                },
            },
        )

        assert await RateResolver(store).resolve("emp-1", AT) is None

    @pytest.mark.asyncio
    async def test_other_employees_rates_ignored(self, store, scoped_rates):
        resolver = RateResolver(store)

        assert await resolver.resolve("emp-2", AT, location_id="loc-1") is None

    @pytest.mark.asyncio
    async def test_legacy_rate_fields(self, store, seed):
        """Documents with hourlyRate / perVisitRate are still understood."""
        await seed(
            RATES_COLLECTION,
            {
                "legacy-hourly": {
                    "employeeId": "emp-1",
                    "hourlyRate": 22.5,
                    "effectiveDate": "2025-01-01T00:00:00.000000",
                },
                "legacy-visit": {
                    "employeeId": "emp-2",
                    "perVisitRate": 60,
                    "effectiveDate": "2025-01-01T00:00:00.000000",
                },
            },
        )
        resolver = RateResolver(store)

        hourly = await resolver.resolve("emp-1", AT)
        visit = await resolver.resolve("emp-2", AT)

        assert hourly.type == RateType.HOURLY
        assert hourly.amount == Decimal("22.5")
        assert visit.type == RateType.PER_VISIT
        assert visit.amount == Decimal("60")

    @pytest.mark.asyncio
    async def test_invalid_rate_record_is_a_miss(self, store, seed):
        await seed(
            RATES_COLLECTION,
            {
                "broken": {
                    "employeeId": "emp-1",
                    "rateType": "hourly",
                    "amount": 0,
                    "effectiveDate": datetime(2025, 1, 1),
                },
            },
        )

        assert await RateResolver(store).resolve("emp-1", AT) is None

    @pytest.mark.asyncio
    async def test_snapshot_keeps_monthly_pay_day(self, store, seed):
        await seed(
            RATES_COLLECTION,
            {
                "salary": {
                    "employeeId": "emp-1",
                    "rateType": "monthly",
                    "amount": 3200,
                    "effectiveDate": datetime(2025, 1, 1),
                    "monthlyPayDay": 28,
                },
            },
        )

        rate = await RateResolver(store).resolve("emp-1", AT)

        assert rate.type == RateType.MONTHLY
        assert rate.monthly_pay_day == 28
