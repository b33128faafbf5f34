"""Request validation: query parameters, date ranges, tenant access."""

from vigor.validation.dashboard import (
    DateRange,
    generate_date_range,
    resolve_query_range,
    validate_activity_query,
    validate_calendar_date,
    validate_dashboard_query,
    validate_date_range,
    validate_location_query,
    validate_org_id,
    validate_tenant_access,
)

__all__ = [
    "DateRange",
    "generate_date_range",
    "resolve_query_range",
    "validate_activity_query",
    "validate_calendar_date",
    "validate_dashboard_query",
    "validate_date_range",
    "validate_location_query",
    "validate_org_id",
    "validate_tenant_access",
]
