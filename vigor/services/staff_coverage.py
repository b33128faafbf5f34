"""
Staff coverage — which opening hours lack a required role.

Opening hours (business timezone):
    weekdays 06:00–22:00, weekends 08:00–20:00

Required roles per hour:
    06–10  RECEPTIONIST
    10–17  RECEPTIONIST, TRAINER
    17–21  RECEPTIONIST, TRAINER, MANAGER   (peak)
    21–    RECEPTIONIST

An hour has a gap when a required role has no shift overlapping it.
Adjacent hourly gaps with the same missing roles are merged.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.db.models import Staff, StaffRole, StaffShift
from vigor.schemas.staff import CoverageGap, CoverageSummary, ShiftOut, StaffCoverage
from vigor.timeutil import business_tz, isoformat_z, local_day_bounds, local_today, to_naive_utc

logger = structlog.get_logger(__name__)

RECEPTIONIST = StaffRole.RECEPTIONIST.value
TRAINER = StaffRole.TRAINER.value
MANAGER = StaffRole.MANAGER.value

SEVERITY_ORDER = ("low", "medium", "high", "critical")
MERGE_TOLERANCE = timedelta(minutes=1)
_HOUR_END = timedelta(minutes=59, seconds=59, milliseconds=999)


@dataclass(frozen=True)
class ShiftWindow:
    """A shift reduced to what coverage needs. Times are naive UTC."""

    role: str
    start: datetime
    end: datetime
    staff_id: Optional[uuid.UUID] = None


@dataclass
class Gap:
    start: datetime
    end: datetime
    missing_roles: list[str] = field(default_factory=list)
    severity: str = "low"

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


# ── Rules ─────────────────────────────────────────────────────────────────


def opening_hours(day: date) -> range:
    """Hours the gym is open on `day` (start hour inclusive, close hour exclusive)."""
    if day.weekday() >= 5:
        return range(8, 20)
    return range(6, 22)


def required_roles(hour: int) -> list[str]:
    if 6 <= hour < 10:
        return [RECEPTIONIST]
    if 10 <= hour < 17:
        return [RECEPTIONIST, TRAINER]
    if 17 <= hour < 21:
        return [RECEPTIONIST, TRAINER, MANAGER]
    return [RECEPTIONIST]


def _role_severity(hour: int, role: str) -> str:
    peak = 17 <= hour < 21
    daytime = 10 <= hour < 17
    if role == MANAGER and peak:
        return "critical"
    if role == RECEPTIONIST:
        if peak:
            return "critical"
        return "high" if daytime else "medium"
    if role == TRAINER and (peak or daytime):
        return "high"
    return "low"


def gap_severity(hour: int, missing_roles: Iterable[str]) -> str:
    """Worst severity across the missing roles."""
    return max(
        (_role_severity(hour, role) for role in missing_roles),
        key=SEVERITY_ORDER.index,
        default="low",
    )


def _worse(a: str, b: str) -> str:
    return a if SEVERITY_ORDER.index(a) >= SEVERITY_ORDER.index(b) else b


# ── Detection ─────────────────────────────────────────────────────────────


def detect_gaps(
    day: date,
    shifts: list[ShiftWindow],
    tz: Optional[ZoneInfo] = None,
) -> list[Gap]:
    """Hourly gaps for `day`, merged. Returned times are naive UTC."""
    tz = tz or business_tz()
    hourly: list[Gap] = []
    for hour in opening_hours(day):
        hour_start = to_naive_utc(datetime.combine(day, time(hour), tzinfo=tz))
        hour_end = hour_start + _HOUR_END
        on_duty = {
            s.role for s in shifts if s.start <= hour_end and s.end > hour_start
        }
        missing = [role for role in required_roles(hour) if role not in on_duty]
        if missing:
            hourly.append(
                Gap(
                    start=hour_start,
                    end=hour_end,
                    missing_roles=missing,
                    severity=gap_severity(hour, missing),
                )
            )
    return merge_gaps(hourly)


def merge_gaps(gaps: list[Gap]) -> list[Gap]:
    """Merge consecutive gaps (≤ 1 minute apart) that miss the same roles."""
    merged: list[Gap] = []
    for gap in sorted(gaps, key=lambda g: g.start):
        last = merged[-1] if merged else None
        if (
            last is not None
            and gap.start - last.end <= MERGE_TOLERANCE
            and sorted(gap.missing_roles) == sorted(last.missing_roles)
        ):
            last.end = max(last.end, gap.end)
            last.severity = _worse(last.severity, gap.severity)
        else:
            merged.append(
                Gap(gap.start, gap.end, list(gap.missing_roles), gap.severity)
            )
    return merged


def summarize(shifts: list[ShiftWindow], gaps: list[Gap]) -> CoverageSummary:
    critical = sum(1 for g in gaps if g.severity == "critical")
    return CoverageSummary(
        total_staff=len({s.staff_id for s in shifts if s.staff_id is not None}),
        total_shifts=len(shifts),
        total_gaps=len(gaps),
        critical_gaps=critical,
        total_gap_hours=round(sum(g.hours for g in gaps), 1),
        coverage_score=max(0, 100 - len(gaps) * 10 - critical * 20),
    )


# ── Service ───────────────────────────────────────────────────────────────


class StaffCoverageService:
    async def coverage(
        self,
        session: AsyncSession,
        company_id: str,
        day: Optional[date] = None,
        location_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> StaffCoverage:
        day = day or local_today(now)
        day_start, day_end = local_day_bounds(day)

        q = (
            select(StaffShift, Staff)
            .join(Staff, StaffShift.staff_id == Staff.id)
            .where(
                and_(
                    Staff.company_id == company_id,
                    StaffShift.start_time <= day_end,
                    StaffShift.end_time >= day_start,
                )
            )
            .order_by(StaffShift.start_time)
        )
        if location_id:
            q = q.where(StaffShift.gym_id == uuid.UUID(location_id))
        rows = (await session.execute(q)).all()

        windows = [
            ShiftWindow(
                role=staff.role,
                start=shift.start_time,
                end=shift.end_time,
                staff_id=staff.id,
            )
            for shift, staff in rows
        ]
        gaps = detect_gaps(day, windows)

        logger.info(
            "staff_coverage_computed",
            company_id=str(company_id),
            day=day.isoformat(),
            shifts=len(windows),
            gaps=len(gaps),
        )
        return StaffCoverage(
            date=day.isoformat(),
            location_id=location_id,
            shifts=[
                ShiftOut(
                    id=str(shift.id),
                    staff_id=str(staff.id),
                    staff_name=f"{staff.first_name} {staff.last_name}".strip(),
                    role=staff.role,
                    gym_id=str(shift.gym_id) if shift.gym_id else None,
                    start_time=isoformat_z(shift.start_time),
                    end_time=isoformat_z(shift.end_time),
                    notes=shift.notes,
                )
                for shift, staff in rows
            ],
            gaps=[
                CoverageGap(
                    start_time=isoformat_z(g.start),
                    end_time=isoformat_z(g.end),
                    missing_roles=g.missing_roles,
                    severity=g.severity,
                )
                for g in gaps
            ],
            summary=summarize(windows, gaps),
        )
