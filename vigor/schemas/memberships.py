"""Expiring membership schemas."""

from typing import Optional

from pydantic import Field

from vigor.schemas.common import CamelModel


class ExpiringMembership(CamelModel):
    id: str
    member_id: str
    member_name: str
    email: Optional[str] = None
    plan_name: Optional[str] = None
    status: str
    ends_at: str
    days_until_expiry: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ExpiringFilters(CamelModel):
    days: int


class ExpiringMemberships(CamelModel):
    memberships: list[ExpiringMembership] = Field(default_factory=list)
    pagination: Pagination
    filters: ExpiringFilters
