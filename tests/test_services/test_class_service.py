"""
Class schedule tests: status boundaries, booking counts, summary, and
the attendance stub.
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from tests.conftest import add_booking, add_class, add_gym, add_membership
from vigor.exceptions import FeatureNotImplementedError, NotFoundError
from vigor.services.class_service import (
    COMPLETED,
    IN_PROGRESS,
    UPCOMING,
    ClassService,
    class_status,
)

HOUR = timedelta(minutes=60)
START = datetime(2025, 8, 17, 18, 0)
NOW = datetime(2025, 8, 17, 18, 30, tzinfo=timezone.utc)


class TestClassStatus:
    @pytest.mark.parametrize("now,expected", [
        (START - timedelta(seconds=1), UPCOMING),
        (START, IN_PROGRESS),
        (START + timedelta(minutes=30), IN_PROGRESS),
        (START + HOUR, IN_PROGRESS),
        (START + HOUR + timedelta(milliseconds=1), COMPLETED),
    ])
    def test_boundaries(self, now, expected):
        assert class_status(START, now, HOUR) == expected


class TestClassesToday:
    @pytest.mark.asyncio
    async def test_empty_day(self, db, company_a):
        out = await ClassService().classes_today(db, str(company_a.id), now=NOW)
        assert out.classes == []
        assert out.date == "2025-08-17"
        assert out.summary.utilization_percent == 0

    @pytest.mark.asyncio
    async def test_bookings_and_status(self, db, company_a):
        gym = await add_gym(db, company_a.id, "Centro")
        early = await add_class(db, gym, datetime(2025, 8, 17, 7, 0), title="Yoga", capacity=10)
        now_on = await add_class(db, gym, START, title="Spinning", capacity=4)
        await add_class(db, gym, datetime(2025, 8, 17, 20, 0), title="Box", capacity=6)

        m = await add_membership(db, company_a.id)
        for status in ("CONFIRMED", "ATTENDED", "CANCELLED", "NO_SHOW"):
            await add_booking(db, early, m, status=status)
        for _ in range(5):
            await add_booking(db, now_on, m)

        out = await ClassService().classes_today(db, str(company_a.id), now=NOW)
        assert [c.title for c in out.classes] == ["Yoga", "Spinning", "Box"]
        yoga, spinning, box = out.classes

        assert yoga.status == COMPLETED
        assert yoga.booked == 2
        assert yoga.spots_left == 8
        assert spinning.status == IN_PROGRESS
        assert spinning.booked == 5
        assert spinning.spots_left == 0
        assert box.status == UPCOMING
        assert box.ends_at == "2025-08-17T21:00:00.000Z"
        assert box.gym_name == "Centro"

        summary = out.summary
        assert summary.total_capacity == 20
        assert summary.total_booked == 7
        assert summary.utilization_percent == 35
        assert (summary.upcoming, summary.in_progress, summary.completed) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_explicit_day(self, db, company_a):
        gym = await add_gym(db, company_a.id)
        await add_class(db, gym, datetime(2025, 8, 16, 9, 0))
        await add_class(db, gym, datetime(2025, 8, 17, 9, 0))
        out = await ClassService().classes_today(
            db, str(company_a.id), day=date(2025, 8, 16), now=NOW
        )
        assert out.total == 1
        assert out.date == "2025-08-16"
        assert out.classes[0].status == COMPLETED

    @pytest.mark.asyncio
    async def test_location_filter(self, db, company_a):
        centro = await add_gym(db, company_a.id, "Centro")
        norte = await add_gym(db, company_a.id, "Norte")
        await add_class(db, centro, datetime(2025, 8, 17, 9, 0))
        await add_class(db, norte, datetime(2025, 8, 17, 10, 0))
        out = await ClassService().classes_today(
            db, str(company_a.id), location_id=str(norte.id), now=NOW
        )
        assert [c.gym_name for c in out.classes] == ["Norte"]
        assert out.location_id == str(norte.id)

    @pytest.mark.asyncio
    async def test_other_tenant_classes_invisible(self, db, company_a, company_b):
        gym_b = await add_gym(db, company_b.id)
        await add_class(db, gym_b, datetime(2025, 8, 17, 9, 0))
        out = await ClassService().classes_today(db, str(company_a.id), now=NOW)
        assert out.total == 0


class TestMarkAttendance:
    @pytest.mark.asyncio
    async def test_own_class_is_not_implemented(self, db, company_a):
        gym = await add_gym(db, company_a.id)
        cls = await add_class(db, gym, START)
        with pytest.raises(FeatureNotImplementedError) as exc_info:
            await ClassService().mark_attendance(db, str(company_a.id), cls.id, [str(uuid.uuid4())])
        assert exc_info.value.status_code == 501

    @pytest.mark.asyncio
    async def test_other_tenant_class_is_not_found(self, db, company_a, company_b):
        gym_b = await add_gym(db, company_b.id)
        cls = await add_class(db, gym_b, START)
        with pytest.raises(NotFoundError):
            await ClassService().mark_attendance(db, str(company_a.id), cls.id, [str(uuid.uuid4())])

    @pytest.mark.asyncio
    async def test_unknown_class_is_not_found(self, db, company_a):
        with pytest.raises(NotFoundError):
            await ClassService().mark_attendance(db, str(company_a.id), uuid.uuid4(), ["x"])
