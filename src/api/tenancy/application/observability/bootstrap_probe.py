"""Protocol for startup orchestration observability.

Defines the interface for domain probes that capture the control-plane and
tenant phases of startup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class BootstrapProbe(Protocol):
    """Domain probe for the startup migration orchestrator."""

    def control_plane_migrated(self, version: str | None) -> None:
        """Record that the control-plane schema is at head."""
        ...

    def control_plane_failed(self, stage: str, error: Exception) -> None:
        """Record that the control plane could not be migrated or read."""
        ...

    def tenants_discovered(self, count: int, concurrency: int) -> None:
        """Record how many active tenants will be provisioned."""
        ...

    def tenant_failed(
        self, tenant_id: str, kind: str, at_version: str | None, message: str
    ) -> None:
        """Record that one tenant could not be provisioned."""
        ...

    def connection_dispose_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that draining a replaced connection raised."""
        ...

    def deadline_exceeded(self, pending: int, deadline_seconds: float) -> None:
        """Record that the tenant phase ran out of time."""
        ...

    def bootstrap_completed(
        self, provisioned: int, failed: int, pending: int, duration_ms: float
    ) -> None:
        """Record the outcome of the tenant phase."""
        ...

    def with_context(self, context: ObservationContext) -> BootstrapProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultBootstrapProbe:
    """Default implementation of BootstrapProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultBootstrapProbe:
        """Create a new probe with observation context bound."""
        return DefaultBootstrapProbe(logger=self._logger, context=context)

    def control_plane_migrated(self, version: str | None) -> None:
        """Record that the control-plane schema is at head."""
        self._logger.info(
            "control_plane_migrated",
            version=version,
            **self._get_context_kwargs(),
        )

    def control_plane_failed(self, stage: str, error: Exception) -> None:
        """Record that the control plane could not be migrated or read."""
        self._logger.critical(
            "control_plane_failed",
            stage=stage,
            error_type=type(error).__name__,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def tenants_discovered(self, count: int, concurrency: int) -> None:
        """Record how many active tenants will be provisioned."""
        self._logger.info(
            "tenants_discovered",
            count=count,
            concurrency=concurrency,
            **self._get_context_kwargs(),
        )

    def tenant_failed(
        self, tenant_id: str, kind: str, at_version: str | None, message: str
    ) -> None:
        """Record that one tenant could not be provisioned."""
        self._logger.error(
            "tenant_bootstrap_failed",
            tenant_id=tenant_id,
            kind=kind,
            at_version=at_version,
            message=message,
            **self._get_context_kwargs(),
        )

    def connection_dispose_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that draining a replaced connection raised."""
        self._logger.warning(
            "tenant_connection_dispose_failed",
            tenant_id=tenant_id,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def deadline_exceeded(self, pending: int, deadline_seconds: float) -> None:
        """Record that the tenant phase ran out of time."""
        self._logger.error(
            "tenant_bootstrap_deadline_exceeded",
            pending=pending,
            deadline_seconds=deadline_seconds,
            **self._get_context_kwargs(),
        )

    def bootstrap_completed(
        self, provisioned: int, failed: int, pending: int, duration_ms: float
    ) -> None:
        """Record the outcome of the tenant phase."""
        log = self._logger.warning if failed or pending else self._logger.info
        log(
            "tenant_bootstrap_completed",
            provisioned=provisioned,
            failed=failed,
            pending=pending,
            duration_ms=round(duration_ms, 2),
            **self._get_context_kwargs(),
        )
