"""
Classes for one calendar day (business timezone) with bookings and status.
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.config import settings
from vigor.db.models import Booking, Gym, GymClass
from vigor.exceptions import FeatureNotImplementedError, NotFoundError
from vigor.schemas.classes import ClassesSummary, ClassesToday, ClassItem
from vigor.timeutil import (
    isoformat_z,
    local_day_bounds,
    local_today,
    now_utc,
    round_half_up,
    to_naive_utc,
)

logger = structlog.get_logger(__name__)

UPCOMING = "upcoming"
IN_PROGRESS = "in-progress"
COMPLETED = "completed"


def class_status(starts_at: datetime, now: datetime, duration: timedelta) -> str:
    """Status of a class at `now`; both times naive UTC. The end minute is in-progress."""
    if now < starts_at:
        return UPCOMING
    if now <= starts_at + duration:
        return IN_PROGRESS
    return COMPLETED


class ClassService:
    """Read-side view of the class schedule."""

    async def classes_today(
        self,
        session: AsyncSession,
        company_id: str,
        location_id: Optional[str] = None,
        day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> ClassesToday:
        now = now or now_utc()
        day = day or local_today(now)
        day_start, day_end = local_day_bounds(day)
        duration = timedelta(minutes=settings.class_duration_minutes)
        now_naive = to_naive_utc(now)

        q = (
            select(GymClass, Gym.name)
            .join(Gym, GymClass.gym_id == Gym.id)
            .where(
                and_(
                    Gym.company_id == company_id,
                    GymClass.starts_at >= day_start,
                    GymClass.starts_at <= day_end,
                )
            )
            .order_by(GymClass.starts_at)
        )
        if location_id:
            q = q.where(GymClass.gym_id == uuid.UUID(location_id))
        rows = (await session.execute(q)).all()

        booked = await self._booked_counts(session, [cls.id for cls, _ in rows])

        items: list[ClassItem] = []
        for cls, gym_name in rows:
            capacity = max(int(cls.capacity or 0), 0)
            n_booked = booked.get(cls.id, 0)
            items.append(
                ClassItem(
                    id=str(cls.id),
                    title=cls.title,
                    instructor=cls.instructor,
                    starts_at=isoformat_z(cls.starts_at),
                    ends_at=isoformat_z(cls.starts_at + duration),
                    capacity=capacity,
                    booked=n_booked,
                    spots_left=max(capacity - n_booked, 0),
                    gym_id=str(cls.gym_id),
                    gym_name=gym_name or "Unknown",
                    status=class_status(cls.starts_at, now_naive, duration),
                )
            )

        return ClassesToday(
            classes=items,
            date=day.isoformat(),
            location_id=location_id,
            total=len(items),
            summary=self._summarize(items),
        )

    async def mark_attendance(
        self,
        session: AsyncSession,
        company_id: str,
        class_id: uuid.UUID,
        membership_ids: list[str],
    ) -> None:
        """
        Attendance is recorded by the front-desk system, not here.

        The class must still belong to the caller so that a 501 never
        confirms the existence of another tenant's class.
        """
        result = await session.execute(
            select(GymClass.id)
            .join(Gym, GymClass.gym_id == Gym.id)
            .where(and_(GymClass.id == class_id, Gym.company_id == company_id))
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Class", str(class_id))

        logger.info(
            "attendance_not_implemented",
            class_id=str(class_id),
            memberships=len(membership_ids),
        )
        raise FeatureNotImplementedError("Marking attendance")

    async def _booked_counts(
        self, session: AsyncSession, class_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, int]:
        if not class_ids:
            return {}
        result = await session.execute(
            select(Booking.class_id, func.count(Booking.id))
            .where(
                and_(
                    Booking.class_id.in_(class_ids),
                    Booking.status.in_(settings.booked_statuses),
                )
            )
            .group_by(Booking.class_id)
        )
        return {class_id: int(count) for class_id, count in result.all()}

    @staticmethod
    def _summarize(items: list[ClassItem]) -> ClassesSummary:
        total_capacity = sum(i.capacity for i in items)
        total_booked = sum(i.booked for i in items)
        return ClassesSummary(
            total_capacity=total_capacity,
            total_booked=total_booked,
            utilization_percent=(
                round_half_up(total_booked / total_capacity * 100) if total_capacity else 0
            ),
            upcoming=sum(1 for i in items if i.status == UPCOMING),
            in_progress=sum(1 for i in items if i.status == IN_PROGRESS),
            completed=sum(1 for i in items if i.status == COMPLETED),
        )
