"""
Classes API Endpoints.

GET  /api/v1/classes/today                    — today's schedule with bookings
POST /api/v1/classes/{class_id}/attendance    — 501 until attendance is recorded here
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.api.cancellation import run_cancellable
from vigor.api.deps import Role, TenantContext, get_db, get_tenant, require_role
from vigor.config import settings
from vigor.schemas.classes import AttendanceRequest, ClassesToday
from vigor.services.class_service import ClassService
from vigor.validation.dashboard import validate_calendar_date, validate_location_query

router = APIRouter(prefix=f"{settings.api_prefix}/classes", tags=["classes"])

_service = ClassService()


@router.get("/today", response_model=ClassesToday)
async def classes_today(
    request: Request,
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    day: Optional[str] = Query(default=None, alias="date", description="YYYY-MM-DD, default today"),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.STAFF)),
):
    """Classes starting on the given local day, ordered by start time."""
    scope = validate_location_query(
        {"orgId": str(tenant.company_id), "locationId": location_id}
    )
    target_day = validate_calendar_date(day)
    return await run_cancellable(
        request,
        _service.classes_today(db, str(tenant.company_id), scope.location_id, target_day),
        operation="classes_today",
    )


@router.post("/{class_id}/attendance", status_code=204)
async def mark_attendance(
    class_id: uuid.UUID,
    body: AttendanceRequest,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.STAFF)),
):
    """Validates the request and class ownership, then answers 501 NOT_IMPLEMENTED."""
    await _service.mark_attendance(db, str(tenant.company_id), class_id, body.membership_ids)
