"""
Revenue API Endpoint.

GET /api/v1/revenue/trends?period=7d|14d|30d — daily completed revenue and growth.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vigor.api.cancellation import run_cancellable
from vigor.api.deps import Role, TenantContext, get_db, get_tenant, require_role
from vigor.config import settings
from vigor.schemas.revenue import RevenueTrends
from vigor.services.revenue_service import RevenueService, parse_period
from vigor.validation.dashboard import validate_location_query

router = APIRouter(prefix=f"{settings.api_prefix}/revenue", tags=["revenue"])

_service = RevenueService()


@router.get("/trends", response_model=RevenueTrends)
async def revenue_trends(
    request: Request,
    period: Optional[str] = Query(default=None, description="7d | 14d | 30d"),
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    _role: Role = Depends(require_role(Role.MANAGER)),
):
    """
    Revenue per local calendar day for the period.

    locationId is validated but not applied: payments belong to the
    organisation, not to a location.
    """
    validate_location_query({"orgId": str(tenant.company_id), "locationId": location_id})
    days = parse_period(period)
    return await run_cancellable(
        request,
        _service.trends(db, str(tenant.company_id), days),
        operation="revenue_trends",
    )
