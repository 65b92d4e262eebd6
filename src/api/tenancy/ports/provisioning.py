"""Provisioning port.

The application layer provisions tenants through this interface; the
infrastructure layer's connection factory implements it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tenancy.domain.connection import TenantConnection
    from tenancy.domain.value_objects import TenantRecord


class ITenantConnectionFactory(Protocol):
    """Turns a tenant row into a live, migrated connection."""

    async def provision(self, record: TenantRecord) -> TenantConnection:
        """Connect to, migrate and seed the tenant database.

        Never touches the tenant registry; publishing the result is the
        caller's decision.

        Raises:
            ProvisionError: Subclass naming the step that failed. The opened
                pool is disposed before the error propagates.
        """
        ...
