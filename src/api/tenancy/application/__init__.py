"""Application layer for the tenancy bounded context.

The registry and resolver sit on the request path; the services run at
startup and when tenants are created or soft-deleted.
"""

from tenancy.application.registry import TenantRegistry
from tenancy.application.resolver import TenantResolver
from tenancy.application.services import (
    TenantBootstrapService,
    TenantLifecycleService,
)

__all__ = [
    "TenantBootstrapService",
    "TenantLifecycleService",
    "TenantRegistry",
    "TenantResolver",
]
