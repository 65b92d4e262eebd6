"""Repository ports for the tenancy bounded context.

Ports define the interfaces the application layer depends on; the
infrastructure layer provides the implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tenancy.domain.value_objects import TenantId, TenantRecord


@runtime_checkable
class IControlPlaneStore(Protocol):
    """Read access to tenant rows in the control-plane database.

    The tenancy lifecycle never writes tenant rows; creation and soft
    deletion belong to control-plane CRUD.
    """

    async def list_active_tenants(self) -> list[TenantRecord]:
        """Return all tenants that are not soft-deleted.

        Raises:
            ControlPlaneUnreachableError: If the control plane cannot be read.
        """
        ...

    async def get_by_public_id(self, public_id: TenantId) -> TenantRecord | None:
        """Return the tenant with the given public id, including soft-deleted ones.

        Returns:
            The record, or None if the tenant never existed.
        """
        ...
