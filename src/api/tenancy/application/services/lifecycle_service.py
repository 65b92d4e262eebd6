"""Tenant lifecycle application service.

Handles tenants that appear, disappear or need a retry after startup:
onboarding a newly created tenant, offboarding a soft-deleted one,
re-provisioning a tenant whose boot failed, and draining everything on
shutdown.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from tenancy.application.observability import DefaultLifecycleProbe, LifecycleProbe
from tenancy.ports.exceptions import (
    ControlPlaneUnreachableError,
    ProvisionError,
    TenantNotFoundError,
)

if TYPE_CHECKING:
    from tenancy.application.registry import TenantRegistry
    from tenancy.domain.connection import TenantConnection
    from tenancy.domain.value_objects import TenantId
    from tenancy.ports.provisioning import ITenantConnectionFactory
    from tenancy.ports.repositories import IControlPlaneStore


class TenantLifecycleService:
    """Application service for onboarding and offboarding tenants.

    Onboarding is synchronous: when ``onboard`` returns, the tenant database
    is migrated and resolvable. Offboarding withdraws the connection from the
    registry before disposing it, so no new request picks up a pool that is
    being closed.

    Soft deletes in the control plane are picked up by ``run_reconciler``,
    which the application lifespan runs as a background task.
    """

    def __init__(
        self,
        store: IControlPlaneStore,
        factory: ITenantConnectionFactory,
        registry: TenantRegistry,
        probe: LifecycleProbe | None = None,
    ):
        """Initialize TenantLifecycleService with dependencies.

        Args:
            store: Control-plane tenant store
            factory: Tenant connection factory
            registry: Registry of live tenant connections
            probe: Optional domain probe for observability
        """
        self._store = store
        self._factory = factory
        self._registry = registry
        self._probe = probe or DefaultLifecycleProbe()

    async def onboard(self, public_id: TenantId) -> TenantConnection:
        """Provision a tenant and publish its connection.

        Safe to call for a tenant that is already live: the new connection
        replaces the old one, which is then drained.

        Args:
            public_id: The tenant to onboard

        Returns:
            The published connection

        Raises:
            TenantNotFoundError: If the control plane has no such tenant
            ProvisionError: If provisioning failed; the registry is unchanged
        """
        record = await self._store.get_by_public_id(public_id)
        if record is None:
            raise TenantNotFoundError(f"Tenant {public_id} not found", public_id)

        try:
            connection = await self._factory.provision(record)
        except ProvisionError as e:
            self._probe.tenant_onboarding_failed(public_id.value, e)
            raise

        previous = self._registry.insert(public_id, connection)
        self._probe.tenant_onboarded(public_id.value, connection.schema_version)
        if previous is not None:
            await self._dispose(previous)
        return connection

    async def reprovision(self, public_id: TenantId) -> TenantConnection:
        """Retry provisioning for a tenant, typically one that failed at boot."""
        return await self.onboard(public_id)

    async def offboard(self, public_id: TenantId) -> bool:
        """Withdraw a tenant's connection and drain its pool.

        Returns:
            True if the tenant was registered, False if there was nothing
            to remove
        """
        connection = self._registry.remove(public_id)
        if connection is not None:
            await self._dispose(connection)
        self._probe.tenant_offboarded(
            public_id.value, was_registered=connection is not None
        )
        return connection is not None

    async def retire_soft_deleted(self) -> list[TenantId]:
        """Offboard registered tenants that are no longer active.

        Returns:
            Ids of the tenants that were offboarded

        Raises:
            ControlPlaneUnreachableError: If the active list cannot be read
        """
        records = await self._store.list_active_tenants()
        active = {record.public_id for record in records}
        retired: list[TenantId] = []
        for public_id in sorted(self._registry.tenant_ids() - active, key=str):
            if await self.offboard(public_id):
                self._probe.tenant_retired(public_id.value)
                retired.append(public_id)
        return retired

    async def run_reconciler(self, interval_seconds: float) -> None:
        """Call ``retire_soft_deleted`` every ``interval_seconds`` until cancelled.

        A pass that cannot reach the control plane is reported and skipped;
        the next pass retries.
        """
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.retire_soft_deleted()
            except ControlPlaneUnreachableError as e:
                self._probe.reconcile_failed(e)

    async def shutdown(self) -> int:
        """Drain every tenant connection.

        Returns:
            Number of connections drained
        """
        connections = self._registry.drain()
        for connection in connections:
            await self._dispose(connection)
        self._probe.lifecycle_shutdown(len(connections))
        return len(connections)

    async def _dispose(self, connection: TenantConnection) -> None:
        try:
            await connection.dispose()
        except Exception as e:
            self._probe.connection_dispose_failed(connection.public_id.value, e)
