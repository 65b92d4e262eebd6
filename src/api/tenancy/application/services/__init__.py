"""Application services for the tenancy bounded context."""

from tenancy.application.services.bootstrap_service import TenantBootstrapService
from tenancy.application.services.lifecycle_service import TenantLifecycleService

__all__ = [
    "TenantBootstrapService",
    "TenantLifecycleService",
]
