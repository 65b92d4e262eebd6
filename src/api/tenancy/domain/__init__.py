"""Tenancy domain layer: value objects and the tenant connection handle."""

from tenancy.domain.connection import TenantConnection
from tenancy.domain.value_objects import (
    BootstrapReport,
    FailureKind,
    IdentityClaim,
    ProvisioningFailure,
    TenantId,
    TenantRecord,
)

__all__ = [
    "BootstrapReport",
    "FailureKind",
    "IdentityClaim",
    "ProvisioningFailure",
    "TenantConnection",
    "TenantId",
    "TenantRecord",
]
