"""Tenancy ports: interfaces and exceptions shared across layers."""

from tenancy.ports.exceptions import (
    BootstrapError,
    ConnectFailedError,
    ControlPlaneUnreachableError,
    MigrationFailedError,
    NotProvisionedError,
    NotTenantScopedError,
    PartialBootstrapError,
    ProvisionError,
    ResolveError,
    SeedFailedError,
    TenancyError,
    TenantNotFoundError,
    TenantSoftDeletedError,
    UnknownTenantError,
)
from tenancy.ports.migrations import ISchemaMigrator
from tenancy.ports.provisioning import ITenantConnectionFactory
from tenancy.ports.repositories import IControlPlaneStore
from tenancy.ports.seeders import Seeder

__all__ = [
    "BootstrapError",
    "ConnectFailedError",
    "ControlPlaneUnreachableError",
    "IControlPlaneStore",
    "ISchemaMigrator",
    "ITenantConnectionFactory",
    "MigrationFailedError",
    "NotProvisionedError",
    "NotTenantScopedError",
    "PartialBootstrapError",
    "ProvisionError",
    "ResolveError",
    "SeedFailedError",
    "Seeder",
    "TenancyError",
    "TenantNotFoundError",
    "TenantSoftDeletedError",
    "UnknownTenantError",
]
