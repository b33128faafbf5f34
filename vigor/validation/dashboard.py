"""
Dashboard request validation.

Turns untrusted query parameters into typed query objects, resolves
date ranges, and guards tenant access. Everything here is pure: the same
input yields the same result or the same error.

Error precedence (first failing parameter wins):
    orgId → locationId → from / to / range → since → limit → anything else
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from vigor.exceptions import DashboardValidationError, ErrorCode
from vigor.schemas.common import DateRangeOut
from vigor.schemas.queries import (
    RANGE_DAYS,
    ActivityQuery,
    DashboardQuery,
    LocationQuery,
    date_range_problem,
    is_uuid,
)
from vigor.timeutil import (
    as_aware,
    business_tz,
    isoformat_z,
    now_utc,
    parse_iso_datetime,
    span_days,
)

logger = structlog.get_logger(__name__)

DEFAULT_RANGE = "7d"

_FIXED_MESSAGES = {
    "orgId": (ErrorCode.INVALID_ORG_ID, "orgId must be a valid UUID"),
    "locationId": (ErrorCode.INVALID_LOCATION_ID, "locationId must be a valid UUID"),
    "since": (ErrorCode.INVALID_SINCE, "since must be a valid ISO datetime"),
    "limit": (ErrorCode.INVALID_LIMIT, "limit must be a number between 1 and 100"),
}
_RANGE_FIELDS = frozenset({"from", "to", "range"})


@dataclass(frozen=True)
class DateRange:
    """Resolved, validated [from, to] window (aware datetimes)."""

    from_: datetime
    to: datetime

    @property
    def days(self) -> int:
        """Span in whole days, rounded up, never below 1."""
        return max(1, span_days(self.from_, self.to))

    def to_schema(self) -> DateRangeOut:
        return DateRangeOut(
            from_=isoformat_z(self.from_),
            to=isoformat_z(self.to),
            days=self.days,
        )


# ── Query validation ──────────────────────────────────────────────────────


def _to_dashboard_error(exc: ValidationError) -> DashboardValidationError:
    """Map the first pydantic error onto a dashboard error code."""
    first = exc.errors()[0]
    loc = [str(part) for part in first.get("loc", ())]
    head = loc[0] if loc else ""

    if head in _FIXED_MESSAGES:
        code, message = _FIXED_MESSAGES[head]
        return DashboardValidationError(code, message, field=head)
    if head in _RANGE_FIELDS:
        return DashboardValidationError(ErrorCode.INVALID_RANGE, first["msg"], field="dateRange")
    return DashboardValidationError(
        ErrorCode.VALIDATION_ERROR,
        first.get("msg", "Invalid request"),
        field=".".join(loc) or None,
    )


def _validate(model, raw: Any):
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        error = _to_dashboard_error(exc)
        logger.info(
            "query_validation_failed",
            query_model=model.__name__,
            error_code=error.code.value,
            field=error.field,
        )
        raise error from exc


def validate_org_id(value: Any) -> str:
    """Return `value` unchanged if it is a v1–v5 UUID string."""
    if not is_uuid(value):
        raise DashboardValidationError(
            ErrorCode.INVALID_ORG_ID, "orgId must be a valid UUID", field="orgId"
        )
    return value


def validate_dashboard_query(raw: Mapping[str, Any]) -> DashboardQuery:
    return _validate(DashboardQuery, raw)


def validate_activity_query(raw: Mapping[str, Any]) -> ActivityQuery:
    return _validate(ActivityQuery, raw)


def validate_location_query(raw: Mapping[str, Any]) -> LocationQuery:
    """orgId + optional locationId; used by location-scoped and streaming endpoints."""
    return _validate(LocationQuery, raw)


# ── Tenant guard ──────────────────────────────────────────────────────────


def validate_tenant_access(user_company_id: Any, requested_org_id: Any) -> None:
    """
    Refuse any request for an org other than the caller's own.

    Strict string equality: no case folding, no canonicalisation.
    """
    if str(user_company_id) != str(requested_org_id):
        logger.warning(
            "tenant_access_denied",
            company_id=str(user_company_id),
            requested_org_id=str(requested_org_id),
        )
        raise DashboardValidationError(
            ErrorCode.FORBIDDEN, "Access denied to organization data", field="orgId"
        )


# ── Date ranges ───────────────────────────────────────────────────────────


def generate_date_range(
    range_: str = DEFAULT_RANGE,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Trailing window of N calendar days ending at `now`.

    Days are subtracted on the wall clock of the business timezone, so a
    window crossing a DST change is 23 or 25 hours off a multiple of 24.
    """
    if range_ not in RANGE_DAYS:
        raise DashboardValidationError(
            ErrorCode.INVALID_RANGE, "range must be one of 7d, 14d, 30d", field="dateRange"
        )
    tz = business_tz()
    end = as_aware(now or now_utc()).astimezone(tz)
    start_wall = end.replace(tzinfo=None) - timedelta(days=RANGE_DAYS[range_])
    return DateRange(from_=start_wall.replace(tzinfo=tz), to=end)


def _coerce(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return as_aware(value)
    return parse_iso_datetime(value)


def validate_date_range(
    from_: Union[str, datetime, None] = None,
    to: Union[str, datetime, None] = None,
    range_: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Resolve the reporting window.

    An explicit from/to pair wins and must satisfy from ≤ to and a span of
    at most 366 days (partial days count as whole). Otherwise the range
    token (default 7d) is expanded relative to `now`.
    """
    if from_ is not None and to is not None:
        try:
            start, end = _coerce(from_), _coerce(to)
        except (TypeError, ValueError):
            raise DashboardValidationError(
                ErrorCode.INVALID_RANGE, "Invalid date format", field="dateRange"
            ) from None
        problem = date_range_problem(start, end)
        if problem:
            raise DashboardValidationError(ErrorCode.INVALID_RANGE, problem, field="dateRange")
        return DateRange(from_=start, to=end)

    return generate_date_range(range_ or DEFAULT_RANGE, now)


def resolve_query_range(query: DashboardQuery, now: Optional[datetime] = None) -> DateRange:
    return validate_date_range(query.from_, query.to, query.range, now)


def validate_calendar_date(value: Optional[str]) -> Optional[date]:
    """Optional `YYYY-MM-DD` query value → date, else INVALID_DATE."""
    if value is None:
        return None
    try:
        if len(value) != 10:
            raise ValueError(value)
        return date.fromisoformat(value)
    except ValueError:
        raise DashboardValidationError(
            ErrorCode.INVALID_DATE, "date must be a valid YYYY-MM-DD date", field="date"
        ) from None
