"""Infrastructure layer for the tenancy bounded context.

Adapters for the control-plane store, the tenant connection factory and the
alembic schema migrator.
"""

from tenancy.infrastructure.connection_factory import TenantConnectionFactory
from tenancy.infrastructure.control_plane_store import ControlPlaneStore
from tenancy.infrastructure.migrator import AlembicSchemaMigrator
from tenancy.infrastructure.seeders import (
    CONTROL_PLANE_SEEDERS,
    TENANT_SEEDERS,
    SqlSeeder,
)

__all__ = [
    "AlembicSchemaMigrator",
    "CONTROL_PLANE_SEEDERS",
    "ControlPlaneStore",
    "SqlSeeder",
    "TENANT_SEEDERS",
    "TenantConnectionFactory",
]
