"""Protocol for tenant lifecycle observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class LifecycleProbe(Protocol):
    """Domain probe for onboarding and offboarding operations."""

    def tenant_onboarded(self, tenant_id: str, schema_version: str | None) -> None:
        """Record that a tenant was provisioned and published."""
        ...

    def tenant_onboarding_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that onboarding a tenant failed."""
        ...

    def tenant_offboarded(self, tenant_id: str, was_registered: bool) -> None:
        """Record that a tenant's connection was withdrawn and drained."""
        ...

    def tenant_retired(self, tenant_id: str) -> None:
        """Record that a soft-deleted tenant was removed from the registry."""
        ...

    def reconcile_failed(self, error: Exception) -> None:
        """Record that a soft-delete reconcile pass could not run."""
        ...

    def connection_dispose_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that draining a withdrawn connection raised."""
        ...

    def lifecycle_shutdown(self, drained: int) -> None:
        """Record that all tenant connections were drained."""
        ...

    def with_context(self, context: ObservationContext) -> LifecycleProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultLifecycleProbe:
    """Default implementation of LifecycleProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultLifecycleProbe:
        """Create a new probe with observation context bound."""
        return DefaultLifecycleProbe(logger=self._logger, context=context)

    def tenant_onboarded(self, tenant_id: str, schema_version: str | None) -> None:
        """Record that a tenant was provisioned and published."""
        self._logger.info(
            "tenant_onboarded",
            tenant_id=tenant_id,
            schema_version=schema_version,
            **self._get_context_kwargs(),
        )

    def tenant_onboarding_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that onboarding a tenant failed."""
        self._logger.error(
            "tenant_onboarding_failed",
            tenant_id=tenant_id,
            error_type=type(error).__name__,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def tenant_offboarded(self, tenant_id: str, was_registered: bool) -> None:
        """Record that a tenant's connection was withdrawn and drained."""
        self._logger.info(
            "tenant_offboarded",
            tenant_id=tenant_id,
            was_registered=was_registered,
            **self._get_context_kwargs(),
        )

    def tenant_retired(self, tenant_id: str) -> None:
        """Record that a soft-deleted tenant was removed from the registry."""
        self._logger.info(
            "tenant_retired",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def reconcile_failed(self, error: Exception) -> None:
        """Record that a soft-delete reconcile pass could not run."""
        self._logger.warning(
            "tenant_reconcile_failed",
            error_type=type(error).__name__,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def connection_dispose_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that draining a withdrawn connection raised."""
        self._logger.warning(
            "tenant_connection_dispose_failed",
            tenant_id=tenant_id,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def lifecycle_shutdown(self, drained: int) -> None:
        """Record that all tenant connections were drained."""
        self._logger.info(
            "tenant_connections_drained",
            drained=drained,
            **self._get_context_kwargs(),
        )
