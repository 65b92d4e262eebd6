"""Domain probe for schema migration runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class MigrationProbe(Protocol):
    """Domain probe for schema migrator operations."""

    def revision_applied(self, migration_set: str, revision: str) -> None:
        """Record that one migration revision was applied."""
        ...

    def migrations_completed(
        self, migration_set: str, version: str | None, applied: int
    ) -> None:
        """Record that a migration run finished."""
        ...

    def migration_failed(
        self, migration_set: str, revision: str | None, error: Exception
    ) -> None:
        """Record that a migration run stopped on a failing revision."""
        ...

    def with_context(self, context: ObservationContext) -> MigrationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultMigrationProbe:
    """Default implementation of MigrationProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultMigrationProbe:
        """Create a new probe with observation context bound."""
        return DefaultMigrationProbe(logger=self._logger, context=context)

    def revision_applied(self, migration_set: str, revision: str) -> None:
        """Record that one migration revision was applied."""
        self._logger.debug(
            "migration_revision_applied",
            migration_set=migration_set,
            revision=revision,
            **self._get_context_kwargs(),
        )

    def migrations_completed(
        self, migration_set: str, version: str | None, applied: int
    ) -> None:
        """Record that a migration run finished."""
        self._logger.info(
            "migrations_completed",
            migration_set=migration_set,
            version=version,
            applied=applied,
            **self._get_context_kwargs(),
        )

    def migration_failed(
        self, migration_set: str, revision: str | None, error: Exception
    ) -> None:
        """Record that a migration run stopped on a failing revision."""
        self._logger.error(
            "migration_failed",
            migration_set=migration_set,
            revision=revision,
            error=str(error),
            **self._get_context_kwargs(),
        )
