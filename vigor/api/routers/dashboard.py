"""
Dashboard API Endpoints.

GET /api/v1/dashboard/summary  — occupancy, expirations, revenue, classes
GET /api/v1/dashboard/activity — recent check-in / check-out events

orgId defaults to the caller's company and must equal it.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.api.cancellation import run_cancellable
from vigor.api.deps import Role, TenantContext, get_db, get_tenant, require_role
from vigor.config import settings
from vigor.schemas.dashboard import ActivityFeed, DashboardSummary
from vigor.services.activity_service import ActivityService
from vigor.services.dashboard_service import DashboardService
from vigor.validation.dashboard import (
    resolve_query_range,
    validate_activity_query,
    validate_dashboard_query,
    validate_tenant_access,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix=f"{settings.api_prefix}/dashboard", tags=["dashboard"])

_service = DashboardService()
_activity = ActivityService()


def query_params(**params: Optional[str]) -> dict[str, str]:
    """Drop parameters the client did not send."""
    return {name: value for name, value in params.items() if value is not None}


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    request: Request,
    org_id: Optional[str] = Query(default=None, alias="orgId"),
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    range_: Optional[str] = Query(default=None, alias="range", description="7d | 14d | 30d"),
    from_: Optional[str] = Query(default=None, alias="from", description="ISO-8601 datetime"),
    to: Optional[str] = Query(default=None, description="ISO-8601 datetime"),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.STAFF)),
):
    """Dashboard summary for the caller's organisation, optionally one location."""
    query = validate_dashboard_query(
        query_params(
            orgId=org_id or str(tenant.company_id),
            locationId=location_id,
            range=range_,
            to=to,
            **{"from": from_},
        )
    )
    validate_tenant_access(tenant.company_id, query.org_id)
    date_range = resolve_query_range(query)

    logger.info(
        "dashboard_summary_requested",
        location_id=query.location_id,
        range_days=date_range.days,
    )
    return await run_cancellable(
        request,
        _service.get_summary(db, str(tenant.company_id), query.location_id, date_range),
        operation="dashboard_summary",
    )


@router.get("/activity", response_model=ActivityFeed)
async def dashboard_activity(
    request: Request,
    org_id: Optional[str] = Query(default=None, alias="orgId"),
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    since: Optional[str] = Query(default=None, description="ISO-8601 datetime, default now - 24h"),
    limit: Optional[str] = Query(default=None, description="1-100, default 25"),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.STAFF)),
):
    """Recent visit events, newest first."""
    query = validate_activity_query(
        query_params(
            orgId=org_id or str(tenant.company_id),
            locationId=location_id,
            since=since,
            limit=limit,
        )
    )
    validate_tenant_access(tenant.company_id, query.org_id)

    return await run_cancellable(
        request,
        _activity.recent_activity(
            db,
            str(tenant.company_id),
            location_id=query.location_id,
            since=query.since,
            limit=query.limit_value,
        ),
        operation="dashboard_activity",
    )
