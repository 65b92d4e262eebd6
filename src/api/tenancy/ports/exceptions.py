"""Exceptions for the tenancy bounded context.

Provisioning errors are captured per tenant and aggregated by the startup
orchestrator; control-plane errors are fatal; resolution errors are returned
to request handlers and mapped to client-facing status codes by the
dependency layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tenancy.domain.value_objects import TenantId


class TenancyError(Exception):
    """Base exception for the tenancy bounded context."""

    pass


class ProvisionError(TenancyError):
    """Raised when a tenant database could not be provisioned.

    Attributes:
        public_id: The tenant that failed.
    """

    def __init__(self, message: str, public_id: TenantId):
        super().__init__(message)
        self.public_id = public_id


class ConnectFailedError(ProvisionError):
    """Raised when the tenant database is unreachable or rejects credentials.

    Usually transient; safe to retry.
    """

    pass


class MigrationFailedError(ProvisionError):
    """Raised when a tenant migration step failed.

    Usually a defect in a migration script or schema drift. Not retried
    automatically; the tenant stays unprovisioned until fixed.

    Attributes:
        at_version: Revision of the migration step that failed, if known.
    """

    def __init__(self, message: str, public_id: TenantId, at_version: str | None):
        super().__init__(message, public_id)
        self.at_version = at_version


class SeedFailedError(ProvisionError):
    """Raised when a tenant seeder failed after migrations completed.

    Attributes:
        seeder: Name of the seeder that failed.
    """

    def __init__(self, message: str, public_id: TenantId, seeder: str):
        super().__init__(message, public_id)
        self.seeder = seeder


class TenantSoftDeletedError(ProvisionError):
    """Raised when provisioning is requested for a soft-deleted tenant."""

    pass


class BootstrapError(TenancyError):
    """Raised when startup cannot proceed at all."""

    pass


class ControlPlaneUnreachableError(BootstrapError):
    """Raised when the control-plane schema cannot be migrated or read.

    Fatal to the process: there is no meaningful partial state without the
    control plane.
    """

    pass


class PartialBootstrapError(BootstrapError):
    """Raised when startup is configured to refuse a partial tenant set.

    Attributes:
        failed: Ids of tenants that failed or did not finish in time.
    """

    def __init__(self, message: str, failed: list[TenantId]):
        super().__init__(message)
        self.failed = failed


class ResolveError(TenancyError):
    """Base class for failures resolving a request to a tenant connection."""

    pass


class NotTenantScopedError(ResolveError):
    """Raised when the identity carries no tenant.

    The caller should use the control-plane connection instead.
    """

    pass


class NotProvisionedError(ResolveError):
    """Raised when a tenant has no live connection.

    Provisioning may be pending or failed, or the tenant is being offboarded.

    Attributes:
        public_id: The requested tenant.
        known: Whether the control plane knows this tenant as active.
    """

    def __init__(self, message: str, public_id: TenantId, known: bool = True):
        super().__init__(message)
        self.public_id = public_id
        self.known = known


class UnknownTenantError(NotProvisionedError):
    """Raised when the tenant does not exist or was soft-deleted."""

    def __init__(self, message: str, public_id: TenantId):
        super().__init__(message, public_id, known=False)


class TenantNotFoundError(TenancyError):
    """Raised when a lifecycle operation names a tenant the store does not have.

    Attributes:
        public_id: The requested tenant.
    """

    def __init__(self, message: str, public_id: TenantId):
        super().__init__(message)
        self.public_id = public_id
