"""
Dashboard API Schemas.

Every number traces to a real query. If a sub-query fails the field is 0
and its name is listed in degraded_fields.
"""

from typing import Optional

from pydantic import Field

from vigor.schemas.common import CamelModel, DateRangeOut


class ExpiringCounts(CamelModel):
    """ACTIVE memberships whose ends_at is within N days from now (cumulative)."""

    within_7d: int = Field(default=0, alias="7d")
    within_14d: int = Field(default=0, alias="14d")
    within_30d: int = Field(default=0, alias="30d")


class RevenueStats(CamelModel):
    """Major currency units, rounded half-up."""

    total: int = 0
    mrr: int = 0
    transaction_count: int = 0
    failed_payments: int = 0
    currency: str = "MXN"


class DashboardSummary(CamelModel):
    active_visits: int = 0
    capacity_limit: int
    utilization_percent: int = 0
    expiring_counts: ExpiringCounts = Field(default_factory=ExpiringCounts)
    revenue: RevenueStats = Field(default_factory=RevenueStats)
    classes_today: int = 0
    staff_gaps: int = 0
    date_range: DateRangeOut
    location_id: Optional[str] = None
    generated_at: str
    degraded_fields: list[str] = Field(default_factory=list)


# ── Activity feed ─────────────────────────────────────────────────────────


class ActivityPayload(CamelModel):
    visit_id: str
    member_id: Optional[str] = None
    member_name: str = "Unknown"
    gym_id: str
    gym_name: str = "Unknown"
    checkin_at: Optional[str] = None
    checkout_at: Optional[str] = None
    duration_minutes: Optional[int] = None


class ActivityEvent(CamelModel):
    id: str
    type: str  # "visit.checkin" | "visit.checkout"
    at: str
    org_id: str
    location_id: Optional[str] = None
    payload: ActivityPayload


class ActivityFeed(CamelModel):
    events: list[ActivityEvent] = Field(default_factory=list)
    total: int = 0
    since: str
    generated_at: str
