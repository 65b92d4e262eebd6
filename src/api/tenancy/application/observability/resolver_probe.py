"""Protocol for tenant resolver observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ResolverProbe(Protocol):
    """Domain probe for request-to-tenant resolution.

    Successful resolutions are not recorded; only the misses that turn into
    client errors are.
    """

    def identity_not_tenant_scoped(self, subject: str) -> None:
        """Record that a caller without a tenant asked for a tenant connection."""
        ...

    def tenant_not_provisioned(self, tenant_id: str, known: bool) -> None:
        """Record that a known tenant has no live connection."""
        ...

    def unknown_tenant(self, tenant_id: str) -> None:
        """Record that the tenant does not exist or was soft-deleted."""
        ...

    def tenant_lookup_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the control plane could not be asked about a miss."""
        ...

    def with_context(self, context: ObservationContext) -> ResolverProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultResolverProbe:
    """Default implementation of ResolverProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultResolverProbe:
        """Create a new probe with observation context bound."""
        return DefaultResolverProbe(logger=self._logger, context=context)

    def identity_not_tenant_scoped(self, subject: str) -> None:
        """Record that a caller without a tenant asked for a tenant connection."""
        self._logger.info(
            "identity_not_tenant_scoped",
            subject=subject,
            **self._get_context_kwargs(),
        )

    def tenant_not_provisioned(self, tenant_id: str, known: bool) -> None:
        """Record that a known tenant has no live connection."""
        self._logger.warning(
            "tenant_not_provisioned",
            tenant_id=tenant_id,
            known=known,
            **self._get_context_kwargs(),
        )

    def unknown_tenant(self, tenant_id: str) -> None:
        """Record that the tenant does not exist or was soft-deleted."""
        self._logger.info(
            "unknown_tenant",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_lookup_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the control plane could not be asked about a miss."""
        self._logger.warning(
            "tenant_lookup_failed",
            tenant_id=tenant_id,
            error=str(error),
            **self._get_context_kwargs(),
        )
