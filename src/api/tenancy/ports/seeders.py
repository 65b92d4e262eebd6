"""Seeder port.

Seeders insert reference data after migrations. They run on every
provisioning, so implementations must be idempotent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class Seeder(Protocol):
    """Inserts reference data into a freshly migrated database."""

    name: str

    async def seed(self, session: AsyncSession) -> None:
        """Insert the seeder's rows within the given session's transaction."""
        ...
