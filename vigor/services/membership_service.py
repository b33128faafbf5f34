"""
Memberships expiring soon, for the renewals work-list.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.db.models import Member, Membership, MembershipStatus
from vigor.schemas.memberships import (
    ExpiringFilters,
    ExpiringMembership,
    ExpiringMemberships,
    Pagination,
)
from vigor.timeutil import isoformat_z, now_utc, to_naive_utc

logger = structlog.get_logger(__name__)

RENEWABLE_STATUSES = (MembershipStatus.ACTIVE.value, MembershipStatus.PAST_DUE.value)


def days_until(ends_at: datetime, now: datetime) -> int:
    """Whole days left, partial days rounded up. Both naive UTC."""
    return math.ceil((ends_at - now).total_seconds() / 86400)


class MembershipService:
    async def expiring(
        self,
        session: AsyncSession,
        company_id: str,
        days: int = 14,
        page: int = 1,
        limit: int = 20,
        now: Optional[datetime] = None,
    ) -> ExpiringMemberships:
        """Renewable memberships ending within `days`, soonest first."""
        now_naive = to_naive_utc(now or now_utc())
        cutoff = now_naive + timedelta(days=days)
        conditions = and_(
            Membership.company_id == company_id,
            Membership.status.in_(RENEWABLE_STATUSES),
            Membership.ends_at >= now_naive,
            Membership.ends_at <= cutoff,
        )

        total = (
            await session.execute(select(func.count(Membership.id)).where(conditions))
        ).scalar_one() or 0

        rows = (
            await session.execute(
                select(Membership, Member)
                .outerjoin(Member, Membership.member_id == Member.id)
                .where(conditions)
                .order_by(Membership.ends_at, Membership.id)
                .offset((page - 1) * limit)
                .limit(limit)
            )
        ).all()

        items = [
            ExpiringMembership(
                id=str(membership.id),
                member_id=str(membership.member_id),
                member_name=member.full_name if member else "Unknown",
                email=member.email if member else None,
                plan_name=membership.plan_name,
                status=membership.status,
                ends_at=isoformat_z(membership.ends_at),
                days_until_expiry=days_until(membership.ends_at, now_naive),
            )
            for membership, member in rows
        ]

        logger.info(
            "expiring_memberships_listed",
            company_id=str(company_id),
            days=days,
            total=total,
            page=page,
        )
        return ExpiringMemberships(
            memberships=items,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit) if total else 0,
            ),
            filters=ExpiringFilters(days=days),
        )
