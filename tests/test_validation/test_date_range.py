"""
Date Range Resolver Tests.

Tests: explicit pairs, the 366-day boundary, zero-width ranges, token
expansion relative to now, wall-clock day subtraction across DST.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from vigor.config import settings
from vigor.exceptions import DashboardValidationError, ErrorCode
from vigor.timeutil import round_half_up
from vigor.validation.dashboard import (
    generate_date_range,
    validate_calendar_date,
    validate_date_range,
)

NOW = datetime(2025, 8, 17, 15, 30, tzinfo=timezone.utc)


def _range_error(*args, **kwargs) -> DashboardValidationError:
    with pytest.raises(DashboardValidationError) as exc_info:
        validate_date_range(*args, **kwargs)
    assert exc_info.value.code == ErrorCode.INVALID_RANGE
    assert exc_info.value.field == "dateRange"
    return exc_info.value


class TestExplicitPair:
    def test_ordered_pair_returned(self):
        r = validate_date_range("2025-08-10T00:00:00.000Z", "2025-08-17T00:00:00.000Z")
        assert r.from_ == datetime(2025, 8, 10, tzinfo=timezone.utc)
        assert r.to == datetime(2025, 8, 17, tzinfo=timezone.utc)
        assert r.days == 7

    def test_reversed_pair_rejected(self):
        err = _range_error("2025-08-17T00:00:00.000Z", "2025-08-10T00:00:00.000Z")
        assert "from date must be before" in err.message

    def test_order_is_antisymmetric(self):
        a, b = "2025-01-01T00:00:00Z", "2025-02-01T00:00:00Z"
        validate_date_range(a, b)
        _range_error(b, a)

    def test_zero_width_range_is_valid(self):
        r = validate_date_range("2025-08-17T00:00:00Z", "2025-08-17T00:00:00Z")
        assert r.from_ == r.to
        assert r.days == 1

    def test_exactly_366_days_passes(self):
        # 2024 is a leap year: Jan 1 2024 → Jan 1 2025 is 366 days
        r = validate_date_range("2024-01-01T00:00:00Z", "2025-01-01T00:00:00Z")
        assert r.days == 366

    def test_366_days_and_a_millisecond_fails(self):
        err = _range_error("2024-01-01T00:00:00Z", "2025-01-01T00:00:00.001Z")
        assert "366 days" in err.message

    def test_367_days_fails(self):
        _range_error("2024-01-01T00:00:00Z", "2025-01-02T00:00:00Z")

    def test_malformed_input(self):
        err = _range_error("2025-13-01T00:00:00Z", "2025-08-17T00:00:00Z")
        assert err.message == "Invalid date format"

    def test_offsets_are_compared_as_instants(self):
        # 23:00 at -06:00 is 05:00Z next day, after 01:00Z
        r = validate_date_range("2025-08-17T23:00:00-06:00", "2025-08-18T06:00:00Z")
        assert r.from_ < r.to

    def test_datetime_objects_accepted(self):
        r = validate_date_range(NOW - timedelta(days=3), NOW)
        assert r.days == 3

    def test_lone_from_falls_back_to_range(self):
        r = validate_date_range(from_="2020-01-01T00:00:00Z", range_="14d", now=NOW)
        assert r.to == NOW
        assert r.days == 14


class TestRangeToken:
    @pytest.mark.parametrize("token,days", [("7d", 7), ("14d", 14), ("30d", 30)])
    def test_trailing_window(self, token, days):
        r = generate_date_range(token, now=NOW)
        assert r.to == NOW
        assert r.to - r.from_ == timedelta(days=days)
        assert r.days == days

    def test_default_is_7d(self):
        r = validate_date_range(now=NOW)
        assert r.days == 7

    def test_unknown_token(self):
        with pytest.raises(DashboardValidationError) as exc_info:
            generate_date_range("365d", now=NOW)
        assert exc_info.value.code == ErrorCode.INVALID_RANGE

    def test_dst_uses_wall_clock_days(self, monkeypatch):
        monkeypatch.setattr(settings, "business_timezone", "America/New_York")
        # DST began 2025-03-09; a 7-day window ending after it is 167 real hours
        now = datetime(2025, 3, 12, 16, 0, tzinfo=timezone.utc)
        r = generate_date_range("7d", now=now)
        assert r.to.hour == r.from_.hour
        # same-zone subtraction is wall clock; compare instants in UTC
        assert r.to.astimezone(timezone.utc) - r.from_.astimezone(timezone.utc) == timedelta(hours=167)
        assert r.days == 7

    def test_dst_fall_back_window(self, monkeypatch):
        monkeypatch.setattr(settings, "business_timezone", "America/New_York")
        # DST ended 2025-11-02; the window gains an hour
        now = datetime(2025, 11, 5, 17, 0, tzinfo=timezone.utc)
        r = generate_date_range("7d", now=now)
        assert r.from_.astimezone(timezone.utc) == datetime(2025, 10, 29, 16, 0, tzinfo=timezone.utc)
        assert r.to.astimezone(timezone.utc) - r.from_.astimezone(timezone.utc) == timedelta(hours=169)
        assert r.days == 7

    def test_schema_renders_z_suffix(self):
        out = generate_date_range("7d", now=NOW).to_schema()
        assert out.to == "2025-08-17T15:30:00.000Z"
        assert out.model_dump(by_alias=True)["from"] == "2025-08-10T15:30:00.000Z"


class TestCalendarDate:
    def test_valid(self):
        assert validate_calendar_date("2025-03-12") == date(2025, 3, 12)

    def test_absent(self):
        assert validate_calendar_date(None) is None

    @pytest.mark.parametrize("value", ["2025-02-30", "12/03/2025", "20250312", "2025-03-12T00:00"])
    def test_invalid(self, value):
        with pytest.raises(DashboardValidationError) as exc_info:
            validate_calendar_date(value)
        assert exc_info.value.code == ErrorCode.INVALID_DATE


class TestRounding:
    @pytest.mark.parametrize("value,expected", [
        (0.49, 0), (0.5, 1), (2.5, 3), (-2.5, -2), (99.5, 100), (647.14, 647),
    ])
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected
