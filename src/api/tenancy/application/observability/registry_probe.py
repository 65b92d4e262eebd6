"""Protocol for tenant registry observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class RegistryProbe(Protocol):
    """Domain probe for tenant registry mutations.

    Reads are not instrumented; they sit on every request.
    """

    def tenant_registered(self, tenant_id: str, replaced: bool, size: int) -> None:
        """Record that a connection was published for a tenant."""
        ...

    def tenant_unregistered(self, tenant_id: str, size: int) -> None:
        """Record that a tenant's connection was withdrawn."""
        ...

    def registry_drained(self, count: int) -> None:
        """Record that every connection was withdrawn."""
        ...

    def with_context(self, context: ObservationContext) -> RegistryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultRegistryProbe:
    """Default implementation of RegistryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultRegistryProbe:
        """Create a new probe with observation context bound."""
        return DefaultRegistryProbe(logger=self._logger, context=context)

    def tenant_registered(self, tenant_id: str, replaced: bool, size: int) -> None:
        """Record that a connection was published for a tenant."""
        self._logger.info(
            "tenant_registered",
            tenant_id=tenant_id,
            replaced=replaced,
            registry_size=size,
            **self._get_context_kwargs(),
        )

    def tenant_unregistered(self, tenant_id: str, size: int) -> None:
        """Record that a tenant's connection was withdrawn."""
        self._logger.info(
            "tenant_unregistered",
            tenant_id=tenant_id,
            registry_size=size,
            **self._get_context_kwargs(),
        )

    def registry_drained(self, count: int) -> None:
        """Record that every connection was withdrawn."""
        self._logger.info(
            "tenant_registry_drained",
            count=count,
            **self._get_context_kwargs(),
        )
