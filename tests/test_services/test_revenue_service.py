"""
Revenue trend tests: period parsing, zero-filled daily buckets, growth.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tests.conftest import add_payment
from vigor.config import settings
from vigor.exceptions import DashboardValidationError, ErrorCode
from vigor.schemas.revenue import RevenuePoint
from vigor.services.revenue_service import RevenueService, compute_growth, parse_period

NOW = datetime(2025, 8, 17, 15, 0, tzinfo=timezone.utc)


def _points(*revenues: float) -> list[RevenuePoint]:
    return [
        RevenuePoint(date=f"2025-08-{i + 1:02d}", revenue=r, transactions=1 if r else 0)
        for i, r in enumerate(revenues)
    ]


class TestParsePeriod:
    @pytest.mark.parametrize("period,days", [(None, 7), ("7d", 7), ("14d", 14), ("30d", 30)])
    def test_known(self, period, days):
        assert parse_period(period) == days

    @pytest.mark.parametrize("period", ["1d", "90d", "week", "30"])
    def test_unknown(self, period):
        with pytest.raises(DashboardValidationError) as exc_info:
            parse_period(period)
        assert exc_info.value.code == ErrorCode.INVALID_PERIOD
        assert exc_info.value.field == "period"


class TestGrowth:
    def test_up(self):
        g = compute_growth(_points(100, 100, 150, 150))
        assert (g.percentage, g.trend) == (50, "up")

    def test_down(self):
        g = compute_growth(_points(200, 200, 100, 100))
        assert (g.percentage, g.trend) == (-50, "down")

    @pytest.mark.parametrize("second", [104, 105, 96, 95])
    def test_within_five_percent_is_stable(self, second):
        g = compute_growth(_points(100, second))
        assert g.trend == "stable"

    def test_just_over_threshold(self):
        assert compute_growth(_points(100, 106)).trend == "up"
        assert compute_growth(_points(100, 94)).trend == "down"

    def test_no_first_half_revenue(self):
        g = compute_growth(_points(0, 0, 0, 500))
        assert (g.percentage, g.trend) == (0, "stable")

    def test_odd_middle_day_is_second_half(self):
        # first = [100], second = [0, 100]
        g = compute_growth(_points(100, 0, 100))
        assert g.percentage == 0

    def test_empty(self):
        assert compute_growth([]).percentage == 0


class TestTrends:
    @pytest.mark.asyncio
    async def test_zero_filled_days(self, db, company_a):
        out = await RevenueService().trends(db, str(company_a.id), days=7, now=NOW)
        assert [p.date for p in out.data_points] == [
            "2025-08-11", "2025-08-12", "2025-08-13", "2025-08-14",
            "2025-08-15", "2025-08-16", "2025-08-17",
        ]
        assert all(p.revenue == 0 for p in out.data_points)
        assert out.total_revenue == 0
        assert out.period.start == "2025-08-11T00:00:00.000Z"
        assert out.period.end == "2025-08-17T23:59:59.999Z"
        assert out.period.days == 7

    @pytest.mark.asyncio
    async def test_daily_buckets(self, db, company_a):
        await add_payment(db, company_a.id, 12345, created_at=datetime(2025, 8, 17, 9, 0))
        await add_payment(db, company_a.id, 5000, created_at=datetime(2025, 8, 17, 10, 0))
        await add_payment(db, company_a.id, 2500, created_at=datetime(2025, 8, 11, 0, 0))
        await add_payment(db, company_a.id, 9999, created_at=datetime(2025, 8, 10, 23, 59))
        await add_payment(db, company_a.id, 7000, status="FAILED", created_at=datetime(2025, 8, 15, 9, 0))

        out = await RevenueService().trends(db, str(company_a.id), days=7, now=NOW)
        by_day = {p.date: p for p in out.data_points}
        assert by_day["2025-08-17"].revenue == 173.45
        assert by_day["2025-08-17"].transactions == 2
        assert by_day["2025-08-11"].revenue == 25.0
        assert by_day["2025-08-15"].revenue == 0
        assert out.total_revenue == 198.45
        assert out.growth.trend == "up"

    @pytest.mark.asyncio
    async def test_buckets_follow_business_timezone(self, db, company_a, monkeypatch):
        monkeypatch.setattr(settings, "business_timezone", "America/Mexico_City")
        # 03:00Z on the 17th is 21:00 on the 16th in Mexico City
        await add_payment(db, company_a.id, 1000, created_at=datetime(2025, 8, 17, 3, 0))
        out = await RevenueService().trends(db, str(company_a.id), days=7, now=NOW)
        by_day = {p.date: p.revenue for p in out.data_points}
        assert by_day["2025-08-16"] == 10.0
        assert by_day["2025-08-17"] == 0

    @pytest.mark.asyncio
    async def test_thirty_day_period(self, db, company_a):
        out = await RevenueService().trends(db, str(company_a.id), days=30, now=NOW)
        assert len(out.data_points) == 30
        assert out.data_points[0].date == (NOW.date() - timedelta(days=29)).isoformat()

    @pytest.mark.asyncio
    async def test_other_tenant_excluded(self, db, company_a, company_b):
        await add_payment(db, company_b.id, 100000, created_at=datetime(2025, 8, 17, 9, 0))
        out = await RevenueService().trends(db, str(company_a.id), days=7, now=NOW)
        assert out.total_revenue == 0
