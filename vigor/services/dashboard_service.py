"""
Dashboard Service — aggregated operator metrics from SQL queries.

Every number traces to a query scoped to one company. Sub-queries are
independent: one failing (DB error, timeout, impossible result) degrades
only its own field to zero, and the field is listed in degraded_fields.
Resolving the tenant itself is not degradable.

The sub-counts are not read from one snapshot unless the session was
opened in snapshot mode (see vigor.auth.dependencies.get_db).
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Optional, TypeVar

import structlog
from sqlalchemy import and_, case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.config import settings
from vigor.db.models import (
    Company,
    Gym,
    GymClass,
    Membership,
    MembershipStatus,
    Payment,
    PaymentStatus,
    Visit,
)
from vigor.exceptions import NotFoundError, UpstreamDataFault
from vigor.schemas.dashboard import DashboardSummary, ExpiringCounts, RevenueStats
from vigor.timeutil import (
    isoformat_z,
    local_day_bounds,
    local_today,
    now_utc,
    round_half_up,
    to_naive_utc,
)
from vigor.validation.dashboard import DateRange

logger = structlog.get_logger(__name__)

T = TypeVar("T")

EXPIRY_WINDOWS = (7, 14, 30)


def _non_negative(value, what: str) -> int:
    value = int(value or 0)
    if value < 0:
        raise UpstreamDataFault(f"{what} returned {value}")
    return value


class DashboardService:
    """Compute the dashboard summary for one tenant."""

    async def get_summary(
        self,
        session: AsyncSession,
        company_id: str,
        location_id: Optional[str],
        date_range: DateRange,
        now: Optional[datetime] = None,
    ) -> DashboardSummary:
        """Build the full summary. Degraded sub-queries read as 0."""
        now = now or now_utc()
        degraded: list[str] = []

        await self._require_company(session, company_id)

        # ── Occupancy ────────────────────────────────────────────
        location_count = await self._safe(
            session, "capacityLimit", 0, degraded,
            self._count_locations(session, company_id, location_id),
        )
        capacity = max(location_count, 1) * settings.per_location_capacity
        active_visits = await self._safe(
            session, "activeVisits", 0, degraded,
            self._count_active_visits(session, company_id, location_id),
        )
        utilization = round_half_up(active_visits / capacity * 100)

        # ── Memberships ──────────────────────────────────────────
        expiring = await self._safe(
            session, "expiringCounts", ExpiringCounts(), degraded,
            self._expiring_counts(session, company_id, now),
        )

        # ── Revenue ──────────────────────────────────────────────
        revenue = await self._safe(
            session, "revenue", RevenueStats(currency=settings.currency), degraded,
            self._revenue(session, company_id, date_range),
        )
        revenue.failed_payments = await self._safe(
            session, "revenue.failedPayments", 0, degraded,
            self._count_failed_payments(session, company_id, date_range),
        )

        # ── Classes ──────────────────────────────────────────────
        classes_today = await self._safe(
            session, "classesToday", 0, degraded,
            self._count_classes_today(session, company_id, location_id, now),
        )

        logger.info(
            "dashboard_summary_computed",
            company_id=str(company_id),
            location_id=location_id,
            range_days=date_range.days,
            degraded=degraded,
        )

        return DashboardSummary(
            active_visits=active_visits,
            capacity_limit=capacity,
            utilization_percent=utilization,
            expiring_counts=expiring,
            revenue=revenue,
            classes_today=classes_today,
            staff_gaps=0,  # gap detection lives in the staff-coverage endpoint
            date_range=date_range.to_schema(),
            location_id=location_id,
            generated_at=isoformat_z(now),
            degraded_fields=degraded,
        )

    # ── Failure isolation ─────────────────────────────────────────────

    async def _safe(
        self,
        session: AsyncSession,
        field: str,
        default: T,
        degraded: list[str],
        query: Awaitable[T],
    ) -> T:
        # SAVEPOINT per sub-query: a failure unwinds only this query and the
        # request transaction (SET LOCAL tenant, snapshot) stays open.
        try:
            async with session.begin_nested():
                return await asyncio.wait_for(query, timeout=settings.query_timeout_seconds)
        except (SQLAlchemyError, asyncio.TimeoutError, UpstreamDataFault) as exc:
            logger.warning(
                "dashboard_query_degraded",
                field=field,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            degraded.append(field)
            if asyncio.iscoroutine(query):
                # never awaited when the SAVEPOINT itself failed
                query.close()
            return default

    # ── Queries ───────────────────────────────────────────────────────

    async def _require_company(self, session: AsyncSession, company_id: str) -> None:
        result = await session.execute(select(Company.id).where(Company.id == company_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Company", str(company_id))

    async def _count_locations(
        self, session: AsyncSession, company_id: str, location_id: Optional[str]
    ) -> int:
        q = select(func.count(Gym.id)).where(Gym.company_id == company_id)
        if location_id:
            q = q.where(Gym.id == uuid.UUID(location_id))
        result = await session.execute(q)
        return _non_negative(result.scalar_one(), "location count")

    async def _count_active_visits(
        self, session: AsyncSession, company_id: str, location_id: Optional[str]
    ) -> int:
        q = (
            select(func.count(Visit.id))
            .join(Membership, Visit.membership_id == Membership.id)
            .where(
                and_(
                    Membership.company_id == company_id,
                    Visit.check_in.is_not(None),
                    Visit.check_out.is_(None),
                )
            )
        )
        if location_id:
            q = q.where(Visit.gym_id == uuid.UUID(location_id))
        result = await session.execute(q)
        return _non_negative(result.scalar_one(), "active visits")

    async def _expiring_counts(
        self, session: AsyncSession, company_id: str, now: datetime
    ) -> ExpiringCounts:
        """Cumulative: a membership inside 7d is also inside 14d and 30d."""
        now_naive = to_naive_utc(now)
        columns = [
            func.coalesce(
                func.sum(case((Membership.ends_at <= now_naive + timedelta(days=n), 1), else_=0)),
                0,
            )
            for n in EXPIRY_WINDOWS
        ]
        result = await session.execute(
            select(*columns).where(
                and_(
                    Membership.company_id == company_id,
                    Membership.status == MembershipStatus.ACTIVE.value,
                    Membership.ends_at.is_not(None),
                )
            )
        )
        c7, c14, c30 = (_non_negative(v, "expiring count") for v in result.one())
        if not c7 <= c14 <= c30:
            raise UpstreamDataFault(f"expiring counts not cumulative: {c7}/{c14}/{c30}")
        return ExpiringCounts(within_7d=c7, within_14d=c14, within_30d=c30)

    async def _revenue(
        self, session: AsyncSession, company_id: str, date_range: DateRange
    ) -> RevenueStats:
        """Completed payments in range. Payments are org-wide, never per location."""
        result = await session.execute(
            select(
                func.coalesce(func.sum(Payment.amount_cents), 0),
                func.count(Payment.id),
            ).where(
                and_(
                    Payment.company_id == company_id,
                    Payment.status == PaymentStatus.COMPLETED.value,
                    Payment.created_at >= to_naive_utc(date_range.from_),
                    Payment.created_at <= to_naive_utc(date_range.to),
                )
            )
        )
        cents, count = result.one()
        total = round_half_up(int(cents or 0) / 100)
        return RevenueStats(
            total=total,
            mrr=round_half_up(total / date_range.days * 30),
            transaction_count=_non_negative(count, "payment count"),
            currency=settings.currency,
        )

    async def _count_failed_payments(
        self, session: AsyncSession, company_id: str, date_range: DateRange
    ) -> int:
        result = await session.execute(
            select(func.count(Payment.id)).where(
                and_(
                    Payment.company_id == company_id,
                    Payment.status == PaymentStatus.FAILED.value,
                    Payment.created_at >= to_naive_utc(date_range.from_),
                    Payment.created_at <= to_naive_utc(date_range.to),
                )
            )
        )
        return _non_negative(result.scalar_one(), "failed payments")

    async def _count_classes_today(
        self,
        session: AsyncSession,
        company_id: str,
        location_id: Optional[str],
        now: datetime,
    ) -> int:
        day_start, day_end = local_day_bounds(local_today(now))
        q = (
            select(func.count(GymClass.id))
            .join(Gym, GymClass.gym_id == Gym.id)
            .where(
                and_(
                    Gym.company_id == company_id,
                    GymClass.starts_at >= day_start,
                    GymClass.starts_at <= day_end,
                )
            )
        )
        if location_id:
            q = q.where(GymClass.gym_id == uuid.UUID(location_id))
        result = await session.execute(q)
        return _non_negative(result.scalar_one(), "classes today")
