"""
Staff Coverage API Endpoint.

GET /api/v1/staff-coverage?date=YYYY-MM-DD&locationId= — shifts and coverage gaps.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.api.cancellation import run_cancellable
from vigor.api.deps import Role, TenantContext, get_db, get_tenant, require_role
from vigor.config import settings
from vigor.schemas.staff import StaffCoverage
from vigor.services.staff_coverage import StaffCoverageService
from vigor.validation.dashboard import validate_calendar_date, validate_location_query

router = APIRouter(prefix=f"{settings.api_prefix}/staff-coverage", tags=["staff"])

_service = StaffCoverageService()


@router.get("", response_model=StaffCoverage)
async def staff_coverage(
    request: Request,
    day: Optional[str] = Query(default=None, alias="date", description="YYYY-MM-DD, default today"),
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.MANAGER)),
):
    """Shifts of the day and the opening hours they leave uncovered."""
    target_day = validate_calendar_date(day)
    scope = validate_location_query(
        {"orgId": str(tenant.company_id), "locationId": location_id}
    )
    return await run_cancellable(
        request,
        _service.coverage(db, str(tenant.company_id), target_day, scope.location_id),
        operation="staff_coverage",
    )
