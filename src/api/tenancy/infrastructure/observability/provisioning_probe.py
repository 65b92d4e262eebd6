"""Domain probe for tenant database provisioning.

Captures connect, migrate and seed outcomes per tenant. Connection strings
are never passed to this probe; only the host and database name are.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ProvisioningProbe(Protocol):
    """Domain probe for tenant connection factory operations."""

    def provisioning_started(
        self, tenant_id: str, host: str | None, database: str | None
    ) -> None:
        """Record that provisioning of a tenant database started."""
        ...

    def tenant_connect_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the tenant database could not be reached."""
        ...

    def tenant_connection_string_invalid(self, tenant_id: str) -> None:
        """Record that the stored connection string could not be used."""
        ...

    def tenant_migration_failed(
        self, tenant_id: str, at_version: str | None, error: Exception
    ) -> None:
        """Record that a tenant migration step failed."""
        ...

    def tenant_seed_failed(self, tenant_id: str, seeder: str, error: Exception) -> None:
        """Record that a tenant seeder failed."""
        ...

    def provisioning_timed_out(self, tenant_id: str, timeout_seconds: float) -> None:
        """Record that provisioning exceeded its deadline."""
        ...

    def engine_dispose_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that cleaning up a failed tenant engine raised."""
        ...

    def tenant_provisioned(
        self, tenant_id: str, schema_version: str | None, duration_ms: float
    ) -> None:
        """Record that a tenant database is migrated and ready."""
        ...

    def with_context(self, context: ObservationContext) -> ProvisioningProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultProvisioningProbe:
    """Default implementation of ProvisioningProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultProvisioningProbe:
        """Create a new probe with observation context bound."""
        return DefaultProvisioningProbe(logger=self._logger, context=context)

    def provisioning_started(
        self, tenant_id: str, host: str | None, database: str | None
    ) -> None:
        """Record that provisioning of a tenant database started."""
        self._logger.info(
            "tenant_provisioning_started",
            tenant_id=tenant_id,
            host=host,
            database=database,
            **self._get_context_kwargs(),
        )

    def tenant_connect_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the tenant database could not be reached."""
        self._logger.error(
            "tenant_connect_failed",
            tenant_id=tenant_id,
            error_type=type(error).__name__,
            error=str(error),
            retryable=True,
            **self._get_context_kwargs(),
        )

    def tenant_connection_string_invalid(self, tenant_id: str) -> None:
        """Record that the stored connection string could not be used."""
        self._logger.error(
            "tenant_connection_string_invalid",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_migration_failed(
        self, tenant_id: str, at_version: str | None, error: Exception
    ) -> None:
        """Record that a tenant migration step failed."""
        self._logger.critical(
            "tenant_migration_failed",
            tenant_id=tenant_id,
            at_version=at_version,
            error=str(error),
            retryable=False,
            **self._get_context_kwargs(),
        )

    def tenant_seed_failed(self, tenant_id: str, seeder: str, error: Exception) -> None:
        """Record that a tenant seeder failed."""
        self._logger.error(
            "tenant_seed_failed",
            tenant_id=tenant_id,
            seeder=seeder,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def provisioning_timed_out(self, tenant_id: str, timeout_seconds: float) -> None:
        """Record that provisioning exceeded its deadline."""
        self._logger.error(
            "tenant_provisioning_timed_out",
            tenant_id=tenant_id,
            timeout_seconds=timeout_seconds,
            **self._get_context_kwargs(),
        )

    def engine_dispose_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that cleaning up a failed tenant engine raised."""
        self._logger.warning(
            "tenant_engine_dispose_failed",
            tenant_id=tenant_id,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def tenant_provisioned(
        self, tenant_id: str, schema_version: str | None, duration_ms: float
    ) -> None:
        """Record that a tenant database is migrated and ready."""
        self._logger.info(
            "tenant_provisioned",
            tenant_id=tenant_id,
            schema_version=schema_version,
            duration_ms=round(duration_ms, 2),
            **self._get_context_kwargs(),
        )
