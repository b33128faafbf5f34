"""
Revenue Service — daily completed-payment totals and growth.

Days are calendar days in the business timezone. Every day of the window
appears in data_points, zero-filled when nothing was paid.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.config import settings
from vigor.db.models import Payment, PaymentStatus
from vigor.exceptions import DashboardValidationError, ErrorCode
from vigor.schemas.queries import RANGE_DAYS
from vigor.schemas.revenue import RevenueGrowth, RevenuePeriod, RevenuePoint, RevenueTrends
from vigor.timeutil import isoformat_z, local_date_of, local_day_bounds, local_today, round_half_up

logger = structlog.get_logger(__name__)

GROWTH_THRESHOLD = 5


def parse_period(period: Optional[str]) -> int:
    """'7d' | '14d' | '30d' → days. Default 7d."""
    period = period or "7d"
    if period not in RANGE_DAYS:
        raise DashboardValidationError(
            ErrorCode.INVALID_PERIOD, "period must be one of 7d, 14d, 30d", field="period"
        )
    return RANGE_DAYS[period]


def compute_growth(points: list[RevenuePoint]) -> RevenueGrowth:
    """
    Second half of the window against the first half.

    With an odd number of days the middle day belongs to the second half.
    No first-half revenue means no measurable growth (0, stable).
    """
    mid = len(points) // 2
    first = sum(p.revenue for p in points[:mid])
    second = sum(p.revenue for p in points[mid:])
    percentage = round_half_up((second - first) / first * 100) if first > 0 else 0
    if percentage > GROWTH_THRESHOLD:
        trend = "up"
    elif percentage < -GROWTH_THRESHOLD:
        trend = "down"
    else:
        trend = "stable"
    return RevenueGrowth(percentage=percentage, trend=trend)


class RevenueService:
    async def trends(
        self,
        session: AsyncSession,
        company_id: str,
        days: int = 7,
        now: Optional[datetime] = None,
    ) -> RevenueTrends:
        """Daily revenue from local midnight of (today - days + 1) through end of today."""
        today = local_today(now)
        first_day = today - timedelta(days=days - 1)
        start, _ = local_day_bounds(first_day)
        _, end = local_day_bounds(today)

        result = await session.execute(
            select(Payment.created_at, Payment.amount_cents).where(
                and_(
                    Payment.company_id == company_id,
                    Payment.status == PaymentStatus.COMPLETED.value,
                    Payment.created_at >= start,
                    Payment.created_at <= end,
                )
            )
        )

        cents_by_day: dict[date, int] = defaultdict(int)
        count_by_day: dict[date, int] = defaultdict(int)
        for created_at, amount_cents in result.all():
            day = local_date_of(created_at)
            cents_by_day[day] += int(amount_cents or 0)
            count_by_day[day] += 1

        points = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            points.append(
                RevenuePoint(
                    date=day.isoformat(),
                    revenue=round(cents_by_day[day] / 100, 2),
                    transactions=count_by_day[day],
                )
            )

        total = round(sum(cents_by_day.values()) / 100, 2)
        growth = compute_growth(points)

        logger.info(
            "revenue_trends_computed",
            company_id=str(company_id),
            days=days,
            total=total,
            trend=growth.trend,
        )
        return RevenueTrends(
            total_revenue=total,
            currency=settings.currency,
            period=RevenuePeriod(start=isoformat_z(start), end=isoformat_z(end), days=days),
            data_points=points,
            growth=growth,
        )
