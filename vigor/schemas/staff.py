"""Staff coverage schemas."""

from typing import Optional

from pydantic import Field

from vigor.schemas.common import CamelModel


class ShiftOut(CamelModel):
    id: str
    staff_id: str
    staff_name: str
    role: str
    gym_id: Optional[str] = None
    start_time: str
    end_time: str
    notes: Optional[str] = None


class CoverageGap(CamelModel):
    start_time: str
    end_time: str
    missing_roles: list[str]
    severity: str  # "low" | "medium" | "high" | "critical"


class CoverageSummary(CamelModel):
    total_staff: int = 0
    total_shifts: int = 0
    total_gaps: int = 0
    critical_gaps: int = 0
    total_gap_hours: float = 0
    coverage_score: int = 100


class StaffCoverage(CamelModel):
    date: str
    location_id: Optional[str] = None
    shifts: list[ShiftOut] = Field(default_factory=list)
    gaps: list[CoverageGap] = Field(default_factory=list)
    summary: CoverageSummary = Field(default_factory=CoverageSummary)
