"""Tenant resolver: maps an authenticated identity to its tenant connection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tenancy.application.observability import DefaultResolverProbe, ResolverProbe
from tenancy.ports.exceptions import (
    ControlPlaneUnreachableError,
    NotProvisionedError,
    NotTenantScopedError,
    UnknownTenantError,
)

if TYPE_CHECKING:
    from tenancy.application.registry import TenantRegistry
    from tenancy.domain.connection import TenantConnection
    from tenancy.domain.value_objects import IdentityClaim, TenantId
    from tenancy.ports.repositories import IControlPlaneStore


class TenantResolver:
    """Resolves identity claims against the tenant registry.

    A registry hit returns without awaiting anything. A miss never
    provisions: it only asks the control plane, when a store is configured,
    whether the tenant exists so callers can tell "unknown" from "not ready".
    The resolver holds no state of its own and is safe for concurrent use.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        store: IControlPlaneStore | None = None,
        probe: ResolverProbe | None = None,
    ):
        """Initialize the resolver.

        Args:
            registry: Registry of live tenant connections
            store: Optional control-plane store used to classify misses
            probe: Optional domain probe for observability
        """
        self._registry = registry
        self._store = store
        self._probe = probe or DefaultResolverProbe()

    async def resolve(self, claim: IdentityClaim) -> TenantConnection:
        """Return the shared connection for the claim's tenant.

        Raises:
            NotTenantScopedError: If the claim carries no tenant
            UnknownTenantError: If the tenant does not exist or is soft-deleted
            NotProvisionedError: If the tenant exists but has no live connection
        """
        public_id = claim.tenant_public_id
        if public_id is None:
            self._probe.identity_not_tenant_scoped(claim.subject)
            raise NotTenantScopedError(
                f"Identity {claim.subject} is not scoped to a tenant"
            )

        connection = self._registry.get(public_id)
        if connection is not None:
            return connection

        raise await self._classify_miss(public_id)

    async def _classify_miss(self, public_id: TenantId) -> NotProvisionedError:
        if self._store is None:
            self._probe.tenant_not_provisioned(public_id.value, known=True)
            return NotProvisionedError(
                f"Tenant {public_id} is not provisioned", public_id, known=True
            )

        try:
            record = await self._store.get_by_public_id(public_id)
        except ControlPlaneUnreachableError as e:
            self._probe.tenant_lookup_failed(public_id.value, e)
            return NotProvisionedError(
                f"Tenant {public_id} is not provisioned", public_id, known=True
            )

        if record is None or not record.is_active:
            self._probe.unknown_tenant(public_id.value)
            return UnknownTenantError(f"Tenant {public_id} does not exist", public_id)

        self._probe.tenant_not_provisioned(public_id.value, known=True)
        return NotProvisionedError(
            f"Tenant {public_id} is not provisioned", public_id, known=True
        )
