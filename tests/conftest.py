"""
Test fixtures for the dashboard API.

Provides:
- In-memory SQLite engine per test (StaticPool, so every session sees it)
- Two tenant companies for isolation tests
- Token factory per role
- FastAPI client with get_db bound to the test database
- Seed helpers for gyms, memberships, visits, classes, payments, shifts
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("BUSINESS_TIMEZONE", "UTC")

import uuid
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vigor.auth.dependencies import get_db
from vigor.auth.jwt import create_access_token
from vigor.db.engine import Base
from vigor.db.models import (
    Booking,
    Company,
    Gym,
    GymClass,
    Member,
    Membership,
    Payment,
    Staff,
    StaffShift,
    Visit,
)
from vigor.main import app
from vigor.timeutil import utcnow

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# ── Companies ────────────────────────────────────────────────────────────


async def _create_company(session_factory, name: str) -> Company:
    async with session_factory() as session:
        company = Company(
            id=uuid.uuid4(),
            name=name,
            slug=f"{name.lower().split()[0]}-{uuid.uuid4().hex[:8]}",
        )
        session.add(company)
        await session.commit()
        return company


@pytest_asyncio.fixture
async def company_a(session_factory) -> Company:
    return await _create_company(session_factory, "Iron Temple")


@pytest_asyncio.fixture
async def company_b(session_factory) -> Company:
    return await _create_company(session_factory, "Pulse Fitness")


# ── Tokens & client ──────────────────────────────────────────────────────


def make_token(company_id, role: str = "owner", user_id: Optional[str] = None) -> str:
    return create_access_token(
        user_id=user_id or str(uuid.uuid4()),
        company_id=str(company_id),
        email=f"{role}@example.com",
        role=role,
    )


def auth_headers(company_id, role: str = "owner") -> dict:
    return {"Authorization": f"Bearer {make_token(company_id, role)}"}


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.rollback()

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Seed helpers ─────────────────────────────────────────────────────────


async def add_gym(session: AsyncSession, company_id: uuid.UUID, name: str = "Centro") -> Gym:
    gym = Gym(company_id=company_id, name=name, city="CDMX")
    session.add(gym)
    await session.flush()
    return gym


async def add_membership(
    session: AsyncSession,
    company_id: uuid.UUID,
    status: str = "ACTIVE",
    ends_at: Optional[datetime] = None,
    first_name: str = "Ana",
    last_name: str = "López",
    plan_name: str = "Monthly",
) -> Membership:
    member = Member(
        company_id=company_id,
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}-{uuid.uuid4().hex[:6]}@example.com",
    )
    session.add(member)
    await session.flush()
    membership = Membership(
        company_id=company_id,
        member_id=member.id,
        plan_name=plan_name,
        status=status,
        starts_at=utcnow() - timedelta(days=60),
        ends_at=ends_at if ends_at is not None else utcnow() + timedelta(days=90),
    )
    session.add(membership)
    await session.flush()
    return membership


async def add_visit(
    session: AsyncSession,
    membership: Membership,
    gym: Gym,
    check_in: Optional[datetime] = None,
    check_out: Optional[datetime] = None,
) -> Visit:
    visit = Visit(
        membership_id=membership.id,
        gym_id=gym.id,
        check_in=check_in or utcnow() - timedelta(minutes=30),
        check_out=check_out,
    )
    session.add(visit)
    await session.flush()
    return visit


async def add_class(
    session: AsyncSession,
    gym: Gym,
    starts_at: datetime,
    title: str = "Spinning",
    capacity: int = 20,
) -> GymClass:
    cls = GymClass(gym_id=gym.id, title=title, instructor="Luis", starts_at=starts_at, capacity=capacity)
    session.add(cls)
    await session.flush()
    return cls


async def add_booking(
    session: AsyncSession, cls: GymClass, membership: Membership, status: str = "CONFIRMED"
) -> Booking:
    booking = Booking(class_id=cls.id, membership_id=membership.id, status=status)
    session.add(booking)
    await session.flush()
    return booking


async def add_payment(
    session: AsyncSession,
    company_id: uuid.UUID,
    amount_cents: int,
    status: str = "COMPLETED",
    created_at: Optional[datetime] = None,
) -> Payment:
    payment = Payment(
        company_id=company_id,
        amount_cents=amount_cents,
        status=status,
        created_at=created_at or utcnow() - timedelta(hours=1),
    )
    session.add(payment)
    await session.flush()
    return payment


async def add_shift(
    session: AsyncSession,
    company_id: uuid.UUID,
    role: str,
    start: datetime,
    end: datetime,
    gym: Optional[Gym] = None,
) -> StaffShift:
    staff = Staff(company_id=company_id, first_name=role.title(), last_name="Tester", role=role)
    session.add(staff)
    await session.flush()
    shift = StaffShift(
        staff_id=staff.id,
        gym_id=gym.id if gym else None,
        start_time=start,
        end_time=end,
    )
    session.add(shift)
    await session.flush()
    return shift


@pytest.fixture
def org_a_headers(company_a) -> dict:
    return auth_headers(company_a.id, "owner")
