"""Tenant registry: the process-wide map of live tenant connections.

Readers sit on the request path and never block: every read goes against an
immutable snapshot. Writers serialise on a lock, build a new mapping and swap
it in with a single reference assignment, so a reader sees either the old or
the new mapping and never a half-updated one.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType

from tenancy.application.observability import DefaultRegistryProbe, RegistryProbe
from tenancy.domain.connection import TenantConnection
from tenancy.domain.value_objects import TenantId


class TenantRegistry:
    """Concurrent ``TenantId -> TenantConnection`` map.

    A key is present iff its tenant database is migrated and usable. Only
    TenantConnection instances, which the connection factory creates after a
    successful migration, can be inserted.
    """

    def __init__(self, probe: RegistryProbe | None = None):
        self._entries: Mapping[TenantId, TenantConnection] = MappingProxyType({})
        self._write_lock = threading.Lock()
        self._probe = probe or DefaultRegistryProbe()

    def get(self, public_id: TenantId) -> TenantConnection | None:
        """Return the live connection for a tenant, or None. Never blocks."""
        return self._entries.get(public_id)

    def insert(
        self, public_id: TenantId, connection: TenantConnection
    ) -> TenantConnection | None:
        """Publish a connection for a tenant.

        This is the commit point of provisioning: once it returns, every
        subsequent ``get`` sees the new connection.

        Returns:
            The connection it replaced, if any. The caller is responsible
            for disposing it.

        Raises:
            TypeError: If ``connection`` is not a TenantConnection
            ValueError: If ``connection`` belongs to another tenant or is closed
        """
        if not isinstance(connection, TenantConnection):
            raise TypeError(
                f"Only TenantConnection instances can be registered, "
                f"got {type(connection).__name__}"
            )
        if connection.public_id != public_id:
            raise ValueError(
                f"Connection for tenant {connection.public_id} cannot be "
                f"registered under {public_id}"
            )
        if connection.is_closed:
            raise ValueError(f"Connection for tenant {public_id} is closed")

        with self._write_lock:
            updated = dict(self._entries)
            previous = updated.get(public_id)
            updated[public_id] = connection
            self._entries = MappingProxyType(updated)
            size = len(updated)

        self._probe.tenant_registered(
            public_id.value, replaced=previous is not None, size=size
        )
        return previous

    def remove(self, public_id: TenantId) -> TenantConnection | None:
        """Withdraw a tenant's connection.

        New requests stop resolving the tenant immediately. Requests that
        already hold the connection may keep using it until it is disposed.

        Returns:
            The removed connection, or None if the tenant was not registered.
        """
        with self._write_lock:
            if public_id not in self._entries:
                return None
            updated = dict(self._entries)
            removed = updated.pop(public_id)
            self._entries = MappingProxyType(updated)
            size = len(updated)

        self._probe.tenant_unregistered(public_id.value, size=size)
        return removed

    def drain(self) -> list[TenantConnection]:
        """Withdraw every connection and return them for disposal."""
        with self._write_lock:
            drained = list(self._entries.values())
            self._entries = MappingProxyType({})

        self._probe.registry_drained(len(drained))
        return drained

    def snapshot(self) -> Mapping[TenantId, TenantConnection]:
        """Return a read-only view that later writes do not affect."""
        return self._entries

    def tenant_ids(self) -> frozenset[TenantId]:
        return frozenset(self._entries)

    def __contains__(self, public_id: object) -> bool:
        return public_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<TenantRegistry(tenants={len(self._entries)})>"
