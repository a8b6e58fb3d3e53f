"""Tests for temporal normalization and document value encoding."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from portal_payroll.models.payroll import RateType
from portal_payroll.store.codec import (
    SERVER_TIMESTAMP,
    encode_instant,
    encode_value,
    to_instant,
)


class TestToInstant:
    """Every stored temporal shape collapses to a naive datetime."""

    def test_none(self):
        assert to_instant(None) is None

    def test_naive_datetime_unchanged(self):
        value = datetime(2026, 1, 5, 8, 0)

        assert to_instant(value) == value

    def test_date_is_midnight(self):
        assert to_instant(date(2026, 1, 5)) == datetime(2026, 1, 5)

    def test_iso_string(self):
        assert to_instant("2026-01-05T08:00:00") == datetime(2026, 1, 5, 8, 0)

    def test_aware_values_become_local_naive(self):
        aware = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)
        expected = aware.astimezone().replace(tzinfo=None)

        assert to_instant(aware) == expected
        assert to_instant("2026-01-05T08:00:00Z") == expected

    def test_timestamp_mapping(self):
        value = {"seconds": 1767600000, "nanoseconds": 500_000_000}

        assert to_instant(value) == datetime.fromtimestamp(1767600000.5)

    def test_garbage_string(self):
        with pytest.raises(ValueError):
            to_instant("yesterday-ish")

    def test_unsupported_type(self):
        with pytest.raises(ValueError):
            to_instant(42)


class TestEncodeValue:
    def test_nested_values(self):
        encoded = encode_value(
            {
                "at": datetime(2026, 1, 5, 8, 0),
                "rate": {"type": RateType.HOURLY, "amount": Decimal("25.50")},
                "days": [date(2026, 1, 1)],
                "flag": True,
                "none": None,
            }
        )

        assert encoded == {
            "at": "2026-01-05T08:00:00.000000",
            "rate": {"type": "hourly", "amount": 25.5},
            "days": ["2026-01-01T00:00:00.000000"],
            "flag": True,
            "none": None,
        }

    def test_server_timestamp_resolved(self):
        now = datetime(2026, 1, 20, 9, 0)

        assert encode_value(SERVER_TIMESTAMP, now) == "2026-01-20T09:00:00.000000"

    def test_server_timestamp_left_without_clock(self):
        assert encode_value(SERVER_TIMESTAMP) is SERVER_TIMESTAMP

    def test_fixed_width_sorts_chronologically(self):
        earlier = encode_value(datetime(2026, 1, 5, 8, 0))
        later = encode_value(datetime(2026, 1, 5, 8, 0, 0, 1))

        assert earlier < later


class TestEncodeInstant:
    def test_missing_instant_rejected(self):
        with pytest.raises(ValueError, match="missing instant"):
            encode_instant(None)

    def test_date_encoded_at_midnight(self):
        assert encode_instant(date(2026, 1, 5)) == "2026-01-05T00:00:00.000000"
