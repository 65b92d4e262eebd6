"""Schema migration port.

A migrator brings one database to the latest revision of a migration set,
skipping revisions already recorded in that database's own history table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class ISchemaMigrator(Protocol):
    """Runs an ordered migration set against a database."""

    async def upgrade(self, engine: AsyncEngine) -> str | None:
        """Apply all pending revisions.

        Args:
            engine: Engine bound to the database to migrate.

        Returns:
            The revision the database is at afterwards (None for an empty set).

        Raises:
            SchemaMigrationError: If a revision failed; ``revision`` names it.
            DatabaseConnectionError: If the database could not be reached.
        """
        ...

    async def current_version(self, engine: AsyncEngine) -> str | None:
        """Return the revision recorded in the database, or None."""
        ...
