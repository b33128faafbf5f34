"""
Query parameter models for the dashboard endpoints.

Field order is error precedence: pydantic reports errors in declaration
order and the validator maps only the first one.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from vigor.config import settings
from vigor.timeutil import parse_iso_datetime, span_days

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
RANGE_DAYS = {"7d": 7, "14d": 14, "30d": 30}
LIMIT_RE = re.compile(r"\d+", re.ASCII)

MIN_LIMIT = 1
MAX_LIMIT = 100


def is_uuid(value) -> bool:
    return isinstance(value, str) and UUID_RE.match(value) is not None


def date_range_problem(start, end) -> Optional[str]:
    """Why an explicit (from, to) pair is unacceptable, or None."""
    if start > end:
        return "from date must be before or equal to to date"
    if span_days(start, end) > settings.max_range_days:
        return f"Date range cannot exceed {settings.max_range_days} days"
    return None


class _QueryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class LocationQuery(_QueryModel):
    """orgId plus optional locationId, shared by every tenant-scoped query."""

    org_id: str = Field(alias="orgId")
    location_id: Optional[str] = Field(default=None, alias="locationId")

    @field_validator("org_id")
    @classmethod
    def _org_id_is_uuid(cls, v: str) -> str:
        if not is_uuid(v):
            raise PydanticCustomError("uuid_pattern", "orgId must be a valid UUID")
        return v

    @field_validator("location_id")
    @classmethod
    def _location_id_is_uuid(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_uuid(v):
            raise PydanticCustomError("uuid_pattern", "locationId must be a valid UUID")
        return v

    @property
    def location_given(self) -> bool:
        """True when locationId was supplied, even as an explicit null."""
        return "location_id" in self.model_fields_set


class DashboardQuery(LocationQuery):
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    range: str = "7d"

    @field_validator("from_", "to")
    @classmethod
    def _iso_datetime(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None:
            return v
        try:
            end = parse_iso_datetime(v)
        except ValueError:
            raise PydanticCustomError("datetime_format", "Invalid date format") from None
        if info.field_name == "to" and info.data.get("from_") is not None:
            problem = date_range_problem(parse_iso_datetime(info.data["from_"]), end)
            if problem:
                raise PydanticCustomError("date_range", problem)
        return v

    @field_validator("range")
    @classmethod
    def _known_range(cls, v: str) -> str:
        if v not in RANGE_DAYS:
            raise PydanticCustomError("range_token", "range must be one of 7d, 14d, 30d")
        return v


class ActivityQuery(LocationQuery):
    since: Optional[str] = None
    limit: str = "25"

    @field_validator("since")
    @classmethod
    def _since_is_datetime(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                parse_iso_datetime(v)
            except ValueError:
                raise PydanticCustomError(
                    "datetime_format", "since must be a valid ISO datetime"
                ) from None
        return v

    @field_validator("limit")
    @classmethod
    def _limit_in_bounds(cls, v: str) -> str:
        if not LIMIT_RE.fullmatch(v) or not MIN_LIMIT <= int(v) <= MAX_LIMIT:
            raise PydanticCustomError(
                "limit_bounds", "limit must be a number between 1 and 100"
            )
        return v

    @property
    def limit_value(self) -> int:
        return int(self.limit)
