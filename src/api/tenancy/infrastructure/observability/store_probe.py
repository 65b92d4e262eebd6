"""Domain probe for control-plane store reads."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ControlPlaneStoreProbe(Protocol):
    """Domain probe for control-plane store operations."""

    def active_tenants_listed(self, count: int) -> None:
        """Record that active tenants were enumerated."""
        ...

    def tenant_retrieved(self, tenant_id: str, active: bool) -> None:
        """Record that a tenant row was found."""
        ...

    def tenant_not_found(self, tenant_id: str) -> None:
        """Record that no tenant row exists for an id."""
        ...

    def malformed_tenant_row(self, internal_id: int, error: Exception) -> None:
        """Record that a tenant row was skipped because its id is invalid."""
        ...

    def store_query_failed(self, operation: str, error: Exception) -> None:
        """Record that the control-plane store could not be read."""
        ...

    def with_context(self, context: ObservationContext) -> ControlPlaneStoreProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultControlPlaneStoreProbe:
    """Default implementation of ControlPlaneStoreProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultControlPlaneStoreProbe:
        """Create a new probe with observation context bound."""
        return DefaultControlPlaneStoreProbe(logger=self._logger, context=context)

    def active_tenants_listed(self, count: int) -> None:
        """Record that active tenants were enumerated."""
        self._logger.info(
            "active_tenants_listed",
            count=count,
            **self._get_context_kwargs(),
        )

    def tenant_retrieved(self, tenant_id: str, active: bool) -> None:
        """Record that a tenant row was found."""
        self._logger.debug(
            "tenant_retrieved",
            tenant_id=tenant_id,
            active=active,
            **self._get_context_kwargs(),
        )

    def tenant_not_found(self, tenant_id: str) -> None:
        """Record that no tenant row exists for an id."""
        self._logger.debug(
            "tenant_not_found",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def store_query_failed(self, operation: str, error: Exception) -> None:
        """Record that the control-plane store could not be read."""
        self._logger.error(
            "control_plane_query_failed",
            operation=operation,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def malformed_tenant_row(self, internal_id: int, error: Exception) -> None:
        """Record that a tenant row was skipped because its id is invalid."""
        self._logger.warning(
            "malformed_tenant_row",
            internal_id=internal_id,
            error=str(error),
            **self._get_context_kwargs(),
        )
