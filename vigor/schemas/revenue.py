"""Revenue trend schemas."""

from pydantic import Field

from vigor.schemas.common import CamelModel


class RevenuePoint(CamelModel):
    date: str  # YYYY-MM-DD, business timezone
    revenue: float
    transactions: int


class RevenuePeriod(CamelModel):
    start: str
    end: str
    days: int


class RevenueGrowth(CamelModel):
    percentage: int = 0
    trend: str = "stable"  # "up" | "down" | "stable"


class RevenueTrends(CamelModel):
    total_revenue: float = 0
    currency: str
    period: RevenuePeriod
    data_points: list[RevenuePoint] = Field(default_factory=list)
    growth: RevenueGrowth = Field(default_factory=RevenueGrowth)
