"""Classes-today schemas."""

from typing import Optional

from pydantic import Field

from vigor.schemas.common import CamelModel


class ClassItem(CamelModel):
    id: str
    title: str
    instructor: Optional[str] = None
    starts_at: str
    ends_at: str
    capacity: int
    booked: int
    spots_left: int
    gym_id: str
    gym_name: str
    status: str  # "upcoming" | "in-progress" | "completed"


class ClassesSummary(CamelModel):
    total_capacity: int = 0
    total_booked: int = 0
    utilization_percent: int = 0
    upcoming: int = 0
    in_progress: int = 0
    completed: int = 0


class ClassesToday(CamelModel):
    classes: list[ClassItem] = Field(default_factory=list)
    date: str
    location_id: Optional[str] = None
    total: int = 0
    summary: ClassesSummary = Field(default_factory=ClassesSummary)


class AttendanceRequest(CamelModel):
    """Body for marking attendance; accepted and validated, not yet applied."""

    membership_ids: list[str] = Field(min_length=1, max_length=500)
    status: str = Field(default="ATTENDED", pattern="^(ATTENDED|NO_SHOW)$")
