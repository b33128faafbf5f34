"""
Vigor — Gym Operations Dashboard API.

Architecture:
    vigor/
    ├── api/             # FastAPI routers (HTTP layer), request cancellation
    ├── auth/            # JWT verification, tenant dependencies, RBAC
    ├── db/              # SQLAlchemy models and engine
    ├── middleware/      # Tenant context, request context, error handling
    ├── schemas/         # Pydantic query and response models
    ├── services/        # Read-only aggregations (dashboard, classes, revenue, ...)
    └── validation/      # Query validation, date ranges, tenant access guard

Module Boundaries:
    - Every query is scoped to exactly one company (tenant)
    - The service is read-only; writes belong to other systems
    - Identity provider issues tokens, we only verify them

Data Flow:
    Request → Tenant context → Role guard → Query validation
    → Tenant access guard → Date range → Aggregation → JSON

Version: 1.0.0
"""

__version__ = "1.0.0"
