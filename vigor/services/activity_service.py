"""
Activity feed: recent check-ins and check-outs as dashboard events.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.config import settings
from vigor.db.models import Gym, Member, Membership, Visit
from vigor.schemas.dashboard import ActivityEvent, ActivityFeed, ActivityPayload
from vigor.timeutil import isoformat_z, now_utc, parse_iso_datetime, to_naive_utc

logger = structlog.get_logger(__name__)

CHECKIN = "visit.checkin"
CHECKOUT = "visit.checkout"


class ActivityService:
    """Visit events for one tenant, newest first."""

    async def recent_activity(
        self,
        session: AsyncSession,
        company_id: str,
        location_id: Optional[str] = None,
        since: Optional[str] = None,
        limit: int = 25,
        now: Optional[datetime] = None,
    ) -> ActivityFeed:
        now = now or now_utc()
        since_at = (
            parse_iso_datetime(since)
            if since
            else now - timedelta(hours=settings.activity_lookback_hours)
        )
        since_naive = to_naive_utc(since_at)

        q = (
            select(Visit, Member, Gym)
            .join(Membership, Visit.membership_id == Membership.id)
            .outerjoin(Member, Membership.member_id == Member.id)
            .outerjoin(Gym, Visit.gym_id == Gym.id)
            .where(
                and_(
                    Membership.company_id == company_id,
                    or_(Visit.check_in >= since_naive, Visit.check_out >= since_naive),
                )
            )
            # latest event per visit, so the newest `limit` events all come
            # from the first `limit` visits
            .order_by(func.coalesce(Visit.check_out, Visit.check_in).desc())
            .limit(limit)
        )
        if location_id:
            q = q.where(Visit.gym_id == uuid.UUID(location_id))
        rows = (await session.execute(q)).all()

        events: list[ActivityEvent] = []
        for visit, member, gym in rows:
            payload = ActivityPayload(
                visit_id=str(visit.id),
                member_id=str(member.id) if member else None,
                member_name=member.full_name if member else "Unknown",
                gym_id=str(visit.gym_id),
                gym_name=gym.name if gym else "Unknown",
                checkin_at=isoformat_z(visit.check_in) if visit.check_in else None,
            )
            if visit.check_in and visit.check_in >= since_naive:
                events.append(self._event(visit, CHECKIN, visit.check_in, company_id, payload))
            if visit.check_out and visit.check_out >= since_naive:
                checkout = payload.model_copy(
                    update={
                        "checkout_at": isoformat_z(visit.check_out),
                        "duration_minutes": self._duration_minutes(visit),
                    }
                )
                events.append(self._event(visit, CHECKOUT, visit.check_out, company_id, checkout))

        # Sort on the datetime, not the rendered string
        events.sort(key=lambda e: parse_iso_datetime(e.at), reverse=True)
        events = events[:limit]

        logger.info(
            "activity_feed_computed",
            company_id=str(company_id),
            location_id=location_id,
            visits=len(rows),
            events=len(events),
        )
        return ActivityFeed(
            events=events,
            total=len(events),
            since=isoformat_z(since_at),
            generated_at=isoformat_z(now),
        )

    def _event(
        self,
        visit: Visit,
        kind: str,
        at: datetime,
        company_id: str,
        payload: ActivityPayload,
    ) -> ActivityEvent:
        suffix = "checkin" if kind == CHECKIN else "checkout"
        return ActivityEvent(
            id=f"visit-{suffix}-{visit.id}",
            type=kind,
            at=isoformat_z(at),
            org_id=str(company_id),
            location_id=str(visit.gym_id),
            payload=payload,
        )

    @staticmethod
    def _duration_minutes(visit: Visit) -> Optional[int]:
        if not (visit.check_in and visit.check_out):
            return None
        return int((visit.check_out - visit.check_in).total_seconds() // 60)
