"""
Gym schema models.

Mirrors the tables owned by the gym-management system. This service only
reads them; models exist so queries are typed and tests can seed SQLite.

Tenant scoping:
    companies ─┬─ gyms ──── classes ── bookings
               ├─ members ─ memberships ─┬─ visits
               │                         └─ payments
               └─ staff ─── staff_shifts
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vigor.db.compat import GUID
from vigor.db.engine import Base
from vigor.timeutil import utcnow


def _genuuid():
    return uuid.uuid4()


class MembershipStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class BookingStatus(str, enum.Enum):
    RESERVED = "RESERVED"
    CONFIRMED = "CONFIRMED"
    ATTENDED = "ATTENDED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class StaffRole(str, enum.Enum):
    RECEPTIONIST = "RECEPTIONIST"
    TRAINER = "TRAINER"
    MANAGER = "MANAGER"
    CLEANER = "CLEANER"


# ──────────────────────────────────────────────────────────────────────────────
# Tenant & locations
# ──────────────────────────────────────────────────────────────────────────────


class Company(Base):
    """Tenant. Every other row belongs to exactly one company."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    gyms: Mapped[list["Gym"]] = relationship(back_populates="company")


class Gym(Base):
    """A physical location."""

    __tablename__ = "gyms"
    __table_args__ = (Index("ix_gyms_company_id", "company_id"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    company_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("companies.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    company: Mapped["Company"] = relationship(back_populates="gyms")


# ──────────────────────────────────────────────────────────────────────────────
# Members, memberships, visits
# ──────────────────────────────────────────────────────────────────────────────


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (Index("ix_members_company_id", "company_id"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    company_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("companies.id"), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Membership(Base):
    """A member's plan. `ends_at` is the expiration timestamp."""

    __tablename__ = "memberships"
    __table_args__ = (
        Index("ix_memberships_company_status", "company_id", "status"),
        Index("ix_memberships_ends_at", "ends_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    company_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("companies.id"), nullable=False)
    member_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("members.id"), nullable=False)
    plan_name: Mapped[Optional[str]] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default=MembershipStatus.ACTIVE.value, nullable=False)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    member: Mapped["Member"] = relationship()


class Visit(Base):
    """A check-in. Open while check_out is NULL (at most one per membership)."""

    __tablename__ = "visits"
    __table_args__ = (
        Index("ix_visits_membership_id", "membership_id"),
        Index("ix_visits_check_in", "check_in"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    membership_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("memberships.id"), nullable=False)
    gym_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("gyms.id"), nullable=False)
    check_in: Mapped[Optional[datetime]] = mapped_column(DateTime)
    check_out: Mapped[Optional[datetime]] = mapped_column(DateTime)


# ──────────────────────────────────────────────────────────────────────────────
# Classes & bookings
# ──────────────────────────────────────────────────────────────────────────────


class GymClass(Base):
    __tablename__ = "classes"
    __table_args__ = (Index("ix_classes_gym_starts", "gym_id", "starts_at"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    gym_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("gyms.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    instructor: Mapped[Optional[str]] = mapped_column(String(255))
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    capacity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    gym: Mapped["Gym"] = relationship()


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_class_id", "class_id"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    class_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("classes.id"), nullable=False)
    membership_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("memberships.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.RESERVED.value, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# ──────────────────────────────────────────────────────────────────────────────
# Payments
# ──────────────────────────────────────────────────────────────────────────────


class Payment(Base):
    """Amounts are integer minor units (cents)."""

    __tablename__ = "payments"
    __table_args__ = (Index("ix_payments_company_created", "company_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    company_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("companies.id"), nullable=False)
    membership_id: Mapped[Optional[uuid.UUID]] = mapped_column(GUID(), ForeignKey("memberships.id"))
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="MXN", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# ──────────────────────────────────────────────────────────────────────────────
# Staff
# ──────────────────────────────────────────────────────────────────────────────


class Staff(Base):
    __tablename__ = "staff"
    __table_args__ = (Index("ix_staff_company_id", "company_id"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    company_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("companies.id"), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)


class StaffShift(Base):
    """A scheduled shift. gym_id NULL means the shift is not tied to a location."""

    __tablename__ = "staff_shifts"
    __table_args__ = (Index("ix_staff_shifts_start", "start_time"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    staff_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("staff.id"), nullable=False)
    gym_id: Mapped[Optional[uuid.UUID]] = mapped_column(GUID(), ForeignKey("gyms.id"))
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    staff: Mapped["Staff"] = relationship()
